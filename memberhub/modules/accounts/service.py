"""Domain services for administrator accounts.

Accounts live in the ``accounts`` collection like every other record kind;
this service only adds password hashing, the first-run administrator and
the login audit entry.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.config import SeedSettings, get_settings
from memberhub.core.crypto import hash_password, verify_password
from memberhub.domain.records import Account, OperationLog, decode_records, encode_records
from memberhub.modules.collections import CollectionService

from .exceptions import AccountDisabledError, AccountNotFoundError, InvalidCredentialsError

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AccountService:
    """Encapsulates core account use cases."""

    def __init__(self, collections: CollectionService, seed: SeedSettings | None = None) -> None:
        self._collections = collections
        self._seed = seed or get_settings().seed

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        return cls(CollectionService.with_session(session))

    async def list_accounts(self) -> list[Account]:
        return decode_records("accounts", await self._collections.get("accounts"))

    async def get_by_id(self, account_id: str) -> Account:
        for account in await self.list_accounts():
            if account.id == account_id:
                return account
        raise AccountNotFoundError(account_id)

    async def get_by_username(self, username: str) -> Account | None:
        for account in await self.list_accounts():
            if account.username == username:
                return account
        return None

    async def ensure_default_admin(self) -> Account | None:
        """Seed exactly one administrator when the collection is empty."""
        if await self.list_accounts():
            return None

        admin = Account(
            id="admin",
            username=self._seed.admin_username,
            password=hash_password(self._seed.admin_password),
            role="admin",
            name=self._seed.admin_display_name,
            email="",
            status="active",
            created_at=_now_iso(),
        )
        await self._collections.put("accounts", encode_records([admin]))
        logger.info("Seeded default administrator account %s", admin.username)
        return admin

    async def authenticate(self, username: str, password: str) -> Account:
        await self.ensure_default_admin()

        account = await self.get_by_username(username)
        if account is None or not verify_password(password, account.password):
            raise InvalidCredentialsError(username)
        if account.status != "active":
            raise AccountDisabledError(username)
        return account

    async def record_login(self, account: Account) -> OperationLog:
        entry = OperationLog(
            id=f"LOG{uuid.uuid4().hex[:12].upper()}",
            operator=account.username,
            action="登录系统",
            module="auth",
            details=f"用户 {account.username} 登录系统",
            timestamp=_now_iso(),
        )
        logs = await self._collections.get("operationLogs")
        if not isinstance(logs, list):
            logs = []
        await self._collections.put("operationLogs", [entry.to_wire(), *logs])
        await self._collections.commit()
        return entry
