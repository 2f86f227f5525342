"""First-run preparation of the collection store."""

from __future__ import annotations

import logging

from memberhub.infrastructure.database import init_db, session_scope
from memberhub.modules.accounts import AccountService
from memberhub.modules.collections import CollectionService

logger = logging.getLogger(__name__)


async def prepare_store(create_tables: bool = True) -> None:
    """Create tables, seed every registered collection and the administrator account."""
    if create_tables:
        await init_db()

    async with session_scope() as session:
        collections = CollectionService.with_session(session)
        await collections.ensure_defaults()
        await AccountService(collections).ensure_default_admin()
    logger.info("Collection store ready")
