"""SQLAlchemy implementation of the collection repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.db.models import Collection as CollectionModel
from memberhub.modules.collections.repository import CollectionRepository


class SqlCollectionRepository(CollectionRepository):
    """One row per collection; every write replaces the whole blob."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, name: str) -> CollectionModel | None:
        stmt = select(CollectionModel).where(CollectionModel.name == name)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> Sequence[CollectionModel]:
        stmt = select(CollectionModel).order_by(CollectionModel.name)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def upsert(self, name: str, blob: str) -> CollectionModel:
        now = datetime.now(timezone.utc)
        model = await self.get(name)
        if model is not None:
            model.data = blob
            model.updated_at = now
            await self._session.flush()
            return model

        model = CollectionModel(name=name, data=blob, updated_at=now)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError:
            # A concurrent writer inserted the row first; overwrite it instead.
            await self._session.rollback()
            stmt = (
                update(CollectionModel)
                .where(CollectionModel.name == name)
                .values(data=blob, updated_at=now)
            )
            await self._session.execute(stmt)
            model = await self.get(name)
            if model is None:
                raise
        return model

    async def insert_if_absent(self, name: str, blob: str) -> bool:
        if await self.get(name) is not None:
            return False
        self._session.add(CollectionModel(name=name, data=blob, updated_at=datetime.now(timezone.utc)))
        await self._session.flush()
        return True

    async def commit(self) -> None:
        await self._session.commit()

    async def ping(self) -> None:
        await self._session.execute(text("SELECT 1"))
