"""Service dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.modules.accounts import AccountService
from memberhub.modules.collections import CollectionService

from .database import get_db_session


def get_collection_service(db: AsyncSession = Depends(get_db_session)) -> CollectionService:
    return CollectionService.with_session(db)


def get_account_service(collections: CollectionService = Depends(get_collection_service)) -> AccountService:
    return AccountService(collections)


__all__ = [
    "get_account_service",
    "get_collection_service",
]
