"""Repository protocol for collection rows."""

from __future__ import annotations

from typing import Protocol, Sequence

from memberhub.db.models import Collection as CollectionModel


class CollectionRepository(Protocol):
    """Raw storage of serialized collection blobs keyed by name."""

    async def get(self, name: str) -> CollectionModel | None:
        ...

    async def list_all(self) -> Sequence[CollectionModel]:
        ...

    async def upsert(self, name: str, blob: str) -> CollectionModel:
        ...

    async def insert_if_absent(self, name: str, blob: str) -> bool:
        ...

    async def commit(self) -> None:
        ...

    async def ping(self) -> None:
        ...
