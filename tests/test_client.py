import httpx
import pytest
import pytest_asyncio

from memberhub.client import (
    CacheState,
    CollectionClient,
    ConnectivityError,
    PersistenceError,
    StoreRequestError,
    SyncCache,
)
from memberhub.core.container import ClientContainer
from memberhub.modules.membership import MemberCreateInput, RechargeInput


@pytest_asyncio.fixture
async def transport(store):
    from memberhub.main import create_app

    return httpx.ASGITransport(app=create_app())


@pytest_asyncio.fixture
async def client(transport):
    async with CollectionClient("http://test/api", transport=transport) as client:
        yield client


async def test_round_trip_through_http(client):
    await client.set_collection("teamGroups", [{"id": "G1", "name": "早班"}])

    assert await client.get_collection("teamGroups") == [{"id": "G1", "name": "早班"}]
    data = await client.bootstrap()
    assert data["teamGroups"] == [{"id": "G1", "name": "早班"}]

    await client.clear_collection("teamGroups")
    assert await client.get_collection("teamGroups") == []


async def test_client_error_mapping(client):
    with pytest.raises(StoreRequestError) as excinfo:
        await client.get_collection("invoices")
    assert excinfo.value.status_code == 404
    assert "invoices" in str(excinfo.value)


async def test_login_stores_token(client):
    user = await client.login("admin", "admin123")
    assert user["role"] == "admin"
    assert client.token

    await client.logout()
    assert client.token is None


async def test_server_errors_are_connectivity_errors():
    def handler(request):
        return httpx.Response(503, json={"status": "error", "message": "database is locked"})

    async with CollectionClient("http://test/api", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ConnectivityError) as excinfo:
            await client.health()
    assert excinfo.value.status_code == 503


async def test_transport_errors_are_connectivity_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with CollectionClient("http://test/api", transport=httpx.MockTransport(handler)) as client:
        cache = SyncCache(client)
        with pytest.raises(ConnectivityError):
            await cache.connect()
    assert not cache.connected


async def test_container_end_to_end(transport, settings):
    container = ClientContainer.build(settings, transport=transport)
    await container.start("admin", "admin123")

    membership = container.membership
    created = membership.add_member(MemberCreateInput(name="赵六", phone="13500000007", balance=50))
    membership.add_recharge(RechargeInput(member_id=created.id, amount=100))
    await container.cache.wait_until_synced()

    async with CollectionClient("http://test/api", transport=transport) as reader:
        members = await reader.get_collection("members")
        recharges = await reader.get_collection("recharges")

    assert members[0]["balance"] == 150
    assert recharges[0]["amount"] == 100
    assert recharges[0]["balance"] == 150

    await container.shutdown()


def _store_handler(put_error=None, bootstrap_response=None):
    def handler(request):
        if request.method == "GET" and request.url.path == "/api/bootstrap":
            return bootstrap_response or httpx.Response(200, json={"data": {"members": []}})
        if request.method == "PUT" and put_error is not None:
            raise put_error("timed out", request=request)
        return httpx.Response(200, json={"ok": True})

    return handler


async def test_html_page_instead_of_json_is_a_connectivity_error():
    page = httpx.Response(200, text="<html>portal login</html>", headers={"content-type": "text/html"})
    transport = httpx.MockTransport(_store_handler(bootstrap_response=page))

    async with CollectionClient("http://test/api", transport=transport) as client:
        with pytest.raises(ConnectivityError):
            await client.bootstrap()


async def test_undecodable_json_is_a_connectivity_error():
    broken = httpx.Response(200, content=b"{not json", headers={"content-type": "application/json"})
    transport = httpx.MockTransport(_store_handler(bootstrap_response=broken))

    async with CollectionClient("http://test/api", transport=transport) as client:
        with pytest.raises(ConnectivityError):
            await client.bootstrap()


async def test_failed_bootstrap_body_disconnects_cache():
    page = httpx.Response(200, text="<html>portal login</html>", headers={"content-type": "text/html"})
    transport = httpx.MockTransport(_store_handler(bootstrap_response=page))

    async with CollectionClient("http://test/api", transport=transport) as client:
        cache = SyncCache(client)
        with pytest.raises(ConnectivityError):
            await cache.connect()
    assert cache.state is CacheState.DISCONNECTED
    assert isinstance(cache.last_error, ConnectivityError)


async def test_timeout_is_a_connectivity_error():
    transport = httpx.MockTransport(_store_handler(put_error=httpx.ReadTimeout))

    async with CollectionClient("http://test/api", timeout=0.5, transport=transport) as client:
        with pytest.raises(ConnectivityError) as excinfo:
            await client.set_collection("members", [])
    assert "timed out" in str(excinfo.value)


async def test_timed_out_persist_is_reported():
    transport = httpx.MockTransport(_store_handler(put_error=httpx.ReadTimeout))
    errors = []

    async with CollectionClient("http://test/api", transport=transport) as client:
        cache = SyncCache(client, persist_retries=1, retry_backoff=0)
        cache.add_error_listener(errors.append)
        await cache.connect()

        cache.write("members", [{"id": "M1"}])
        await cache.wait_until_synced()

    assert len(errors) == 1
    assert isinstance(errors[0], PersistenceError)
    assert errors[0].collection == "members"
    assert errors[0].attempts == 2
    assert isinstance(errors[0].cause, ConnectivityError)
    assert cache.read("members") == [{"id": "M1"}]
