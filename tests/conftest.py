import asyncio
import copy

import httpx
import pytest
import pytest_asyncio

from memberhub.bootstrap import prepare_store
from memberhub.client.exceptions import ConnectivityError, StoreRequestError
from memberhub.core.config import get_settings
from memberhub.infrastructure.database import dispose_engine
from memberhub.modules.collections import KNOWN_COLLECTIONS


@pytest.fixture(autouse=True)
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("DATABASE__URL", f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    monkeypatch.setenv("SECURITY__SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("SECURITY__BCRYPT_ROUNDS", "4")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def store(settings):
    """A freshly prepared SQLite collection store."""
    await prepare_store()
    yield
    await dispose_engine()


@pytest_asyncio.fixture
async def api(store):
    from memberhub.main import create_app

    transport = httpx.ASGITransport(app=create_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class FakeStore:
    """In-memory stand-in for CollectionClient.

    ``gate`` holds every ``set_collection`` call until it is set, so tests can
    stack writes while a persist is in flight.
    """

    def __init__(self, data=None):
        self.data = {name: [] for name in KNOWN_COLLECTIONS}
        self.data.update(copy.deepcopy(data or {}))
        self.sent = []
        self.gate = asyncio.Event()
        self.gate.set()
        self.failures = 0
        self.unreachable = set()
        self.rejected = set()
        self.bootstrap_error = None
        self.closed = False

    async def bootstrap(self):
        if self.bootstrap_error is not None:
            raise self.bootstrap_error
        return copy.deepcopy(self.data)

    async def get_collection(self, name):
        return copy.deepcopy(self.data.get(name, []))

    async def set_collection(self, name, data):
        self.sent.append((name, copy.deepcopy(data)))
        await self.gate.wait()
        if name in self.rejected:
            raise StoreRequestError(f"PUT /collections/{name}: rejected", status_code=400)
        if name in self.unreachable:
            raise ConnectivityError(f"PUT /collections/{name}: connection refused")
        if self.failures:
            self.failures -= 1
            raise ConnectivityError(f"PUT /collections/{name}: timed out")
        self.data[name] = copy.deepcopy(data)

    async def import_collections(self, collections):
        for name, data in collections.items():
            self.data[name] = copy.deepcopy(data)

    async def aclose(self):
        self.closed = True

    def sent_for(self, name):
        return [payload for sent_name, payload in self.sent if sent_name == name]


@pytest.fixture
def fake_store():
    return FakeStore()
