"""Simple dependency container for wiring the client-side services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import httpx

from memberhub.client.cache import SyncCache
from memberhub.client.http import CollectionClient
from memberhub.core.config import Settings, get_settings
from memberhub.modules.membership import MembershipService


@dataclass(slots=True)
class ClientContainer:
    """Owns one store client, the cache over it and the business service."""

    settings: Settings
    client: CollectionClient
    cache: SyncCache
    membership: MembershipService
    operator: str = field(default="admin")

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        *,
        operator: str = "admin",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ClientContainer":
        settings = settings or get_settings()
        client = CollectionClient.from_settings(settings, transport=transport)
        cache = SyncCache.from_settings(client, settings)
        membership = MembershipService(cache, operator=operator)
        return cls(settings=settings, client=client, cache=cache, membership=membership, operator=operator)

    async def start(self, username: str | None = None, password: str | None = None) -> None:
        """Optionally log in, then load every collection into the cache."""
        if username is not None:
            await self.client.login(username, password or "")
        await self.cache.connect()

    async def shutdown(self) -> None:
        await self.cache.close()


__all__ = ["ClientContainer"]
