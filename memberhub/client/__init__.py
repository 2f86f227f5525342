"""Client side of the store: HTTP client and the synchronization cache."""

from .cache import CacheState, CollectionStoreClient, SyncCache
from .exceptions import (
    ConnectivityError,
    NotConnectedError,
    PersistenceError,
    StoreRequestError,
    SyncError,
)
from .http import CollectionClient

__all__ = [
    "CacheState",
    "CollectionClient",
    "CollectionStoreClient",
    "ConnectivityError",
    "NotConnectedError",
    "PersistenceError",
    "StoreRequestError",
    "SyncCache",
    "SyncError",
]
