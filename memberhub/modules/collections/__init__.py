"""Named-collection document store."""

from .exceptions import CollectionError, CollectionNotRegisteredError, InvalidCollectionPayloadError
from .models import KNOWN_COLLECTIONS, CollectionData, CollectionSnapshot, is_registered
from .service import CollectionService, parse_blob, serialize

__all__ = [
    "KNOWN_COLLECTIONS",
    "CollectionData",
    "CollectionError",
    "CollectionNotRegisteredError",
    "CollectionService",
    "CollectionSnapshot",
    "InvalidCollectionPayloadError",
    "is_registered",
    "parse_blob",
    "serialize",
]
