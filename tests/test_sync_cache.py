import asyncio

import pytest

from memberhub.client import (
    CacheState,
    ConnectivityError,
    NotConnectedError,
    PersistenceError,
    SyncCache,
)

M1 = {"id": "M1", "name": "张三", "phone": "13800000001"}
M2 = {"id": "M2", "name": "李四", "phone": "13800000002"}


@pytest.fixture
def cache(fake_store):
    return SyncCache(fake_store, persist_retries=2, retry_backoff=0)


async def test_read_before_connect_raises(cache):
    with pytest.raises(NotConnectedError):
        cache.read("members")
    with pytest.raises(NotConnectedError):
        cache.write("members", [])


async def test_connect_loads_every_collection(cache, fake_store):
    fake_store.data["members"] = [M1]
    await cache.connect()

    assert cache.connected
    assert cache.read("members") == [M1]
    assert cache.read("recharges") == []


async def test_failed_connect_is_reported_and_reraised(cache, fake_store):
    fake_store.bootstrap_error = ConnectivityError("GET /bootstrap failed: connection refused")

    with pytest.raises(ConnectivityError):
        await cache.connect()
    assert cache.state is CacheState.DISCONNECTED
    assert cache.last_error is fake_store.bootstrap_error


async def test_unknown_collection_name(cache):
    await cache.connect()
    with pytest.raises(KeyError):
        cache.read("invoices")
    with pytest.raises(KeyError):
        cache.write_many({"members": [M1], "invoices": []})
    assert cache.read("members") == []


async def test_read_returns_a_copy(cache, fake_store):
    fake_store.data["members"] = [dict(M1)]
    await cache.connect()

    members = cache.read("members")
    members[0]["name"] = "改名"
    members.append(M2)

    assert cache.read("members") == [M1]


async def test_write_is_copied_in(cache):
    await cache.connect()
    members = [dict(M1)]
    cache.write("members", members)
    members[0]["name"] = "改名"

    assert cache.read("members") == [M1]
    await cache.wait_until_synced()


async def test_back_to_back_writes_end_with_latest_value(cache, fake_store):
    await cache.connect()
    fake_store.gate.clear()

    cache.write("members", [])
    cache.write("members", [M1])
    cache.write("members", [M1, M2])
    await asyncio.sleep(0)
    fake_store.gate.set()
    await cache.wait_until_synced()

    assert fake_store.data["members"] == [M1, M2]
    assert fake_store.sent_for("members")[-1] == [M1, M2]


async def test_writes_during_inflight_persist_send_current_value(cache, fake_store):
    await cache.connect()
    fake_store.gate.clear()

    cache.write("members", [M1])
    await asyncio.sleep(0)
    assert fake_store.sent_for("members") == [[M1]]

    cache.write("members", [M2])
    cache.write("members", [M1, M2])
    assert cache.pending == ["members"]
    assert cache.is_dirty("members")

    fake_store.gate.set()
    await cache.wait_until_synced()

    assert fake_store.sent_for("members") == [[M1], [M1, M2]]
    assert fake_store.data["members"] == [M1, M2]
    assert cache.pending == []
    assert not cache.is_dirty("members")


async def test_write_back_to_acknowledged_value_still_resends(cache, fake_store):
    await cache.connect()
    fake_store.gate.clear()

    cache.write("members", [M1])
    await asyncio.sleep(0)
    cache.write("members", [])
    fake_store.gate.set()
    await cache.wait_until_synced()

    assert fake_store.data["members"] == []


async def test_transient_failure_is_retried(cache, fake_store):
    await cache.connect()
    fake_store.failures = 2

    cache.write("members", [M1])
    await cache.wait_until_synced()

    assert fake_store.data["members"] == [M1]
    assert len(fake_store.sent_for("members")) == 3
    assert cache.last_persist_error("members") is None


async def test_persist_failure_is_reported_without_rollback(cache, fake_store):
    errors = []
    cache.add_error_listener(errors.append)
    await cache.connect()
    fake_store.unreachable.add("members")

    cache.write("members", [M1])
    await cache.wait_until_synced()

    assert len(errors) == 1
    assert isinstance(errors[0], PersistenceError)
    assert errors[0].collection == "members"
    assert errors[0].attempts == 3
    assert cache.read("members") == [M1]
    assert fake_store.data["members"] == []
    assert cache.last_persist_error("members") is errors[0]
    assert cache.is_dirty("members")


async def test_rejected_write_is_not_retried(cache, fake_store):
    errors = []
    cache.add_error_listener(errors.append)
    await cache.connect()
    fake_store.rejected.add("members")

    cache.write("members", [M1])
    await cache.wait_until_synced()

    assert len(fake_store.sent_for("members")) == 1
    assert errors[0].attempts == 1


async def test_failing_listener_does_not_stop_others(cache, fake_store):
    seen = []

    def broken(error):
        raise RuntimeError("listener bug")

    cache.add_error_listener(broken)
    cache.add_error_listener(seen.append)
    await cache.connect()
    fake_store.unreachable.add("members")

    cache.write("members", [M1])
    await cache.wait_until_synced()

    assert len(seen) == 1


async def test_refresh_discards_local_value(cache, fake_store):
    await cache.connect()
    fake_store.data["cardTypes"] = [{"id": "CT1"}]

    assert await cache.refresh("cardTypes") == [{"id": "CT1"}]
    assert cache.read("cardTypes") == [{"id": "CT1"}]


async def test_import_reloads_from_store(cache, fake_store):
    await cache.connect()

    await cache.import_collections({"members": [M1, M2], "systemSettings": {"storeName": "汗蒸馆"}})

    assert cache.read("members") == [M1, M2]
    assert cache.read("systemSettings") == {"storeName": "汗蒸馆"}


async def test_clear_persists_empty_collection(cache, fake_store):
    fake_store.data["recharges"] = [{"id": "R1"}]
    await cache.connect()

    cache.clear("recharges")
    await cache.wait_until_synced()

    assert fake_store.data["recharges"] == []


async def test_close_flushes_and_closes_client(cache, fake_store):
    await cache.connect()
    cache.write("members", [M1])

    await cache.close()

    assert fake_store.data["members"] == [M1]
    assert fake_store.closed


def test_write_without_running_loop_waits_for_flush(cache, fake_store):
    asyncio.run(cache.connect())

    cache.write("members", [M1])
    assert fake_store.sent == []
    assert cache.pending == ["members"]

    asyncio.run(cache.flush())
    assert fake_store.data["members"] == [M1]


async def test_failed_forced_reconnect_drops_to_disconnected(cache, fake_store):
    await cache.connect()
    fake_store.bootstrap_error = RuntimeError("unexpected bootstrap payload")

    with pytest.raises(RuntimeError):
        await cache.connect(force=True)

    assert cache.state is CacheState.DISCONNECTED
    assert cache.last_error is fake_store.bootstrap_error
    with pytest.raises(NotConnectedError):
        cache.read("members")


async def test_unexpected_persist_error_is_reported(cache, fake_store):
    errors = []
    cache.add_error_listener(errors.append)
    await cache.connect()

    async def broken_set_collection(name, data):
        fake_store.sent.append((name, data))
        raise ValueError("malformed response body")

    fake_store.set_collection = broken_set_collection

    cache.write("members", [M1])
    await cache.wait_until_synced()

    assert len(errors) == 1
    assert errors[0].collection == "members"
    assert errors[0].attempts == 1
    assert isinstance(errors[0].cause, ValueError)
    assert cache.last_persist_error("members") is errors[0]
    assert len(fake_store.sent) == 1
    assert cache.read("members") == [M1]
