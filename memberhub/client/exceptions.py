"""Errors raised by the collection client and the sync cache."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for client-side storage errors."""


class ConnectivityError(SyncError):
    """The store could not be reached, timed out or failed with a 5xx."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreRequestError(SyncError):
    """The store rejected the request (4xx); retrying will not help."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotConnectedError(SyncError):
    """The cache was used before a successful ``connect()``."""


class PersistenceError(SyncError):
    """A scheduled background write failed after all retries."""

    def __init__(self, collection: str, attempts: int, cause: BaseException | None = None) -> None:
        message = f"persisting {collection} failed after {attempts} attempt(s)"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.collection = collection
        self.attempts = attempts
        self.cause = cause


__all__ = [
    "ConnectivityError",
    "NotConnectedError",
    "PersistenceError",
    "StoreRequestError",
    "SyncError",
]
