"""In-memory mirror of every collection with write-coalescing persistence.

Reads and writes are synchronous and never touch the network. Each write
schedules a background persist for its collection. Per collection at most
one request is in flight; writes that land meanwhile mark the collection
dirty, and when the request finishes the *current* value is sent if it
differs from what the store last acknowledged. Failed persists are retried
with backoff, then reported to error listeners; the in-memory value is kept.
"""

from __future__ import annotations

import asyncio
import copy
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol

from memberhub.core.config import Settings, get_settings
from memberhub.modules.collections.models import KNOWN_COLLECTIONS

from .exceptions import NotConnectedError, PersistenceError, StoreRequestError, SyncError

logger = logging.getLogger(__name__)

_UNSENT = object()

ErrorListener = Callable[[PersistenceError], None]


class CollectionStoreClient(Protocol):
    async def bootstrap(self) -> dict[str, Any]:
        ...

    async def get_collection(self, name: str) -> Any:
        ...

    async def set_collection(self, name: str, data: Any) -> None:
        ...

    async def import_collections(self, collections: Mapping[str, Any]) -> None:
        ...

    async def aclose(self) -> None:
        ...


class CacheState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass(slots=True)
class _PersistSlot:
    task: Optional[asyncio.Task] = None
    dirty: bool = False
    last_sent: Any = _UNSENT
    last_error: Optional[PersistenceError] = None

    @property
    def in_flight(self) -> bool:
        return self.task is not None and not self.task.done()


class SyncCache:
    def __init__(
        self,
        client: CollectionStoreClient,
        *,
        persist_retries: int = 2,
        retry_backoff: float = 0.5,
        collections: Iterable[str] = KNOWN_COLLECTIONS,
    ) -> None:
        self._client = client
        self._persist_retries = persist_retries
        self._retry_backoff = retry_backoff
        self._known = frozenset(collections)
        self._data: dict[str, Any] = {}
        self._slots: dict[str, _PersistSlot] = {}
        self._listeners: list[ErrorListener] = []
        self.state = CacheState.DISCONNECTED
        self.last_error: Optional[BaseException] = None
        self.last_connected: Optional[datetime] = None

    @classmethod
    def from_settings(cls, client: CollectionStoreClient, settings: Settings | None = None) -> "SyncCache":
        settings = settings or get_settings()
        return cls(
            client,
            persist_retries=settings.client.persist_retries,
            retry_backoff=settings.client.retry_backoff,
        )

    @property
    def connected(self) -> bool:
        return self.state is CacheState.CONNECTED

    @property
    def pending(self) -> list[str]:
        """Collections with a persist in flight or a local change not yet scheduled."""
        return sorted(name for name, slot in self._slots.items() if slot.in_flight or slot.dirty)

    def is_dirty(self, name: str) -> bool:
        slot = self._slots.get(name)
        if slot is None:
            return False
        return slot.in_flight or slot.dirty or (
            slot.last_sent is not _UNSENT and self._data.get(name) != slot.last_sent
        )

    def last_persist_error(self, name: str) -> Optional[PersistenceError]:
        slot = self._slots.get(name)
        return slot.last_error if slot else None

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        self._listeners.remove(listener)

    # -- lifecycle -----------------------------------------------------------------

    async def connect(self, force: bool = False) -> None:
        if self.connected and not force:
            return

        try:
            remote = await self._client.bootstrap()
        except Exception as exc:
            self.state = CacheState.DISCONNECTED
            self.last_error = exc
            logger.error("Cache connect failed: %r", exc)
            raise

        self._data = {name: copy.deepcopy(value) for name, value in remote.items() if name in self._known}
        for name, value in self._data.items():
            self._slot(name).last_sent = copy.deepcopy(value)
        self.state = CacheState.CONNECTED
        self.last_error = None
        self.last_connected = datetime.now(timezone.utc)
        logger.info("Cache connected with %d collections", len(self._data))

    async def refresh(self, name: str) -> Any:
        """Re-fetch one collection, discarding any local value not yet persisted."""
        self._require_connected()
        self._check_name(name)
        remote = await self._client.get_collection(name)
        self._data[name] = copy.deepcopy(remote)
        slot = self._slot(name)
        slot.last_sent = copy.deepcopy(remote)
        slot.dirty = False
        return copy.deepcopy(remote)

    async def import_collections(self, collections: Mapping[str, Any]) -> None:
        """Bulk-import on the store, then reload everything from it."""
        await self.wait_until_synced()
        await self._client.import_collections(collections)
        await self.connect(force=True)

    async def wait_until_synced(self) -> None:
        """Wait until no persist is in flight, including re-sends triggered meanwhile."""
        while True:
            tasks = [slot.task for slot in self._slots.values() if slot.in_flight]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def flush(self) -> None:
        """Schedule writes made without a running loop, then wait for all persists."""
        for name, slot in list(self._slots.items()):
            if slot.dirty and not slot.in_flight:
                self._schedule(name)
        await self.wait_until_synced()

    async def close(self) -> None:
        await self.flush()
        await self._client.aclose()

    # -- synchronous access --------------------------------------------------------

    def read(self, name: str) -> Any:
        self._require_connected()
        self._check_name(name)
        return copy.deepcopy(self._data.setdefault(name, []))

    def write(self, name: str, data: Any) -> None:
        self.write_many({name: data})

    def write_many(self, changes: Mapping[str, Any]) -> None:
        """Apply several collection writes in one step, persisting them in order."""
        self._require_connected()
        for name in changes:
            self._check_name(name)
        for name, data in changes.items():
            self._data[name] = copy.deepcopy(data)
        for name in changes:
            self._schedule(name)

    def clear(self, name: str) -> None:
        self.write(name, [])

    # -- persistence ---------------------------------------------------------------

    def _require_connected(self) -> None:
        if not self.connected:
            raise NotConnectedError("cache is not connected; call connect() first")

    def _check_name(self, name: str) -> None:
        if name not in self._known:
            raise KeyError(f"unknown collection: {name}")

    def _slot(self, name: str) -> _PersistSlot:
        slot = self._slots.get(name)
        if slot is None:
            slot = self._slots[name] = _PersistSlot()
        return slot

    def _schedule(self, name: str) -> None:
        slot = self._slot(name)
        if slot.in_flight:
            slot.dirty = True
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run on; flush() picks this up later.
            slot.dirty = True
            logger.debug("No running loop, deferring persist of %s", name)
            return
        slot.dirty = False
        slot.task = loop.create_task(self._drain(name, slot), name=f"persist:{name}")

    async def _drain(self, name: str, slot: _PersistSlot) -> None:
        while True:
            payload = copy.deepcopy(self._data.get(name, []))
            slot.dirty = False
            try:
                await self._send(name, payload)
            except PersistenceError as exc:
                slot.last_error = exc
                self._report(exc)
                if not slot.dirty:
                    return
                continue

            slot.last_sent = payload
            slot.last_error = None
            if self._data.get(name, []) == payload:
                return
            logger.debug("Collection %s changed while persisting, sending latest value", name)

    async def _send(self, name: str, payload: Any) -> None:
        attempts = self._persist_retries + 1
        last_exc: Optional[SyncError] = None
        for attempt in range(1, attempts + 1):
            try:
                await self._client.set_collection(name, payload)
                logger.debug("Persisted %s (attempt %d)", name, attempt)
                return
            except StoreRequestError as exc:
                raise PersistenceError(name, attempt, exc) from exc
            except SyncError as exc:
                last_exc = exc
                logger.warning("Persisting %s failed (attempt %d/%d): %s", name, attempt, attempts, exc)
                if attempt < attempts:
                    await asyncio.sleep(self._retry_backoff * 2 ** (attempt - 1))
            except Exception as exc:
                # Not retried: the same payload fails the same way.
                logger.exception("Persisting %s raised unexpectedly", name)
                raise PersistenceError(name, attempt, exc) from exc
        raise PersistenceError(name, attempts, last_exc) from last_exc

    def _report(self, error: PersistenceError) -> None:
        logger.error("Sync failed: %s", error)
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Persistence error listener %r failed", listener)


__all__ = ["CacheState", "CollectionStoreClient", "SyncCache"]
