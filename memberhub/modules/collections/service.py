"""Domain service for the named-collection document store."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import CollectionNotRegisteredError, InvalidCollectionPayloadError
from .models import KNOWN_COLLECTIONS, CollectionData, CollectionSnapshot, is_registered
from .repository import CollectionRepository

logger = logging.getLogger(__name__)

EMPTY_BLOB = "[]"


def parse_blob(blob: Any, fallback: CollectionData = None) -> CollectionData:
    """Decode a stored blob; anything unreadable becomes ``fallback`` (``[]`` by default)."""
    if fallback is None:
        fallback = []
    if blob is None or blob == "":
        return fallback
    if isinstance(blob, (list, dict)):
        return blob
    try:
        data = json.loads(blob)
    except (TypeError, ValueError):
        return fallback
    if not isinstance(data, (list, dict)):
        return fallback
    return data


def serialize(data: CollectionData) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


class CollectionService:
    """Get, upsert, bootstrap and bulk-import collections."""

    def __init__(self, repository: CollectionRepository) -> None:
        self._repository = repository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "CollectionService":
        from memberhub.infrastructure.database.repositories import SqlCollectionRepository

        return cls(SqlCollectionRepository(session))

    @staticmethod
    def ensure_registered(name: str) -> None:
        if not is_registered(name):
            raise CollectionNotRegisteredError(name)

    async def bootstrap(self) -> dict[str, CollectionData]:
        rows = {model.name: model.data for model in await self._repository.list_all()}
        result: dict[str, CollectionData] = {}
        for name in KNOWN_COLLECTIONS:
            blob = rows.get(name)
            data = parse_blob(blob)
            if blob and data == [] and blob.strip() != EMPTY_BLOB:
                logger.warning("Collection %s holds a malformed blob, serving it as empty", name)
            result[name] = data
        return result

    async def get(self, name: str) -> CollectionData:
        self.ensure_registered(name)
        model = await self._repository.get(name)
        if model is None:
            return []
        return parse_blob(model.data)

    async def snapshot(self, name: str) -> CollectionSnapshot:
        self.ensure_registered(name)
        model = await self._repository.get(name)
        if model is None:
            return CollectionSnapshot(name=name, data=[])
        return CollectionSnapshot(name=name, data=parse_blob(model.data), updated_at=model.updated_at)

    async def put(self, name: str, data: CollectionData) -> CollectionSnapshot:
        self.ensure_registered(name)
        if not isinstance(data, (list, dict)):
            raise InvalidCollectionPayloadError("Data must be an array or object")
        model = await self._repository.upsert(name, serialize(data))
        logger.debug("Stored collection %s", name)
        return CollectionSnapshot(name=name, data=data, updated_at=model.updated_at)

    async def clear(self, name: str) -> CollectionSnapshot:
        return await self.put(name, [])

    async def clear_all(self) -> None:
        for name in KNOWN_COLLECTIONS:
            await self.put(name, [])

    async def import_bulk(self, collections: Mapping[str, Any]) -> list[str]:
        """Upsert every registered entry, committing each one on its own.

        A failure part-way leaves the earlier collections written. Entries
        for unregistered names are skipped.
        """
        if not isinstance(collections, Mapping):
            raise InvalidCollectionPayloadError("Collections payload is required")

        imported: list[str] = []
        for name, data in collections.items():
            if not is_registered(name):
                logger.warning("Skipping unregistered collection %s during import", name)
                continue
            await self.put(name, parse_blob(data))
            await self._repository.commit()
            imported.append(name)
        logger.info("Imported %d collections", len(imported))
        return imported

    async def ensure_defaults(self) -> list[str]:
        """Insert an empty row for every registered name that has none yet."""
        created = []
        for name in KNOWN_COLLECTIONS:
            if await self._repository.insert_if_absent(name, EMPTY_BLOB):
                created.append(name)
        if created:
            logger.info("Created default collections: %s", ", ".join(created))
        return created

    async def commit(self) -> None:
        await self._repository.commit()

    async def ping(self) -> None:
        await self._repository.ping()
