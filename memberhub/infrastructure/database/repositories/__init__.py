"""SQLAlchemy-backed repository implementations."""

from .collection_repository import SqlCollectionRepository

__all__ = [
    "SqlCollectionRepository",
]
