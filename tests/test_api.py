from memberhub.modules.collections import KNOWN_COLLECTIONS


async def test_health(api):
    response = await api.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "connected"


async def test_bootstrap_returns_every_collection(api):
    response = await api.get("/api/bootstrap")
    assert response.status_code == 200
    data = response.json()["data"]
    assert set(data) == set(KNOWN_COLLECTIONS)
    assert len(data["accounts"]) == 1
    assert data["members"] == []


async def test_put_then_get_collection(api):
    members = [{"id": "M1", "name": "李四", "phone": "13900000000", "balance": 50}]

    response = await api.put("/api/collections/members", json={"data": members})
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    response = await api.get("/api/collections/members")
    assert response.json() == {"data": members}


async def test_unknown_collection_is_404(api):
    assert (await api.get("/api/collections/invoices")).status_code == 404
    assert (await api.put("/api/collections/invoices", json={"data": []})).status_code == 404
    assert (await api.delete("/api/collections/invoices")).status_code == 404


async def test_invalid_payload_is_400(api):
    response = await api.put("/api/collections/members", json={"data": "oops"})
    assert response.status_code == 400

    response = await api.put("/api/collections/members", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "请求参数不合法"


async def test_delete_clears_collection(api):
    await api.put("/api/collections/recharges", json={"data": [{"id": "R1"}]})

    response = await api.delete("/api/collections/recharges")
    assert response.status_code == 200
    assert (await api.get("/api/collections/recharges")).json() == {"data": []}


async def test_import_and_clear_all(api):
    response = await api.post(
        "/api/import",
        json={"collections": {"cardTypes": [{"id": "CT1"}], "teamGroups": [{"id": "G1"}], "bogus": []}},
    )
    assert response.status_code == 200

    data = (await api.get("/api/bootstrap")).json()["data"]
    assert data["cardTypes"] == [{"id": "CT1"}]
    assert data["teamGroups"] == [{"id": "G1"}]
    assert "bogus" not in data

    assert (await api.post("/api/clear")).json() == {"ok": True}
    data = (await api.get("/api/bootstrap")).json()["data"]
    assert all(value == [] for value in data.values())


async def test_import_requires_collections(api):
    response = await api.post("/api/import", json={"data": {}})
    assert response.status_code == 400


async def test_login_and_me(api):
    response = await api.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["username"] == "admin"
    assert body["user"]["role"] == "admin"

    response = await api.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert response.status_code == 200
    assert response.json()["id"] == "admin"

    logs = (await api.get("/api/collections/operationLogs")).json()["data"]
    assert logs[0]["action"] == "登录系统"
    assert logs[0]["operator"] == "admin"


async def test_login_with_wrong_password(api):
    response = await api.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401


async def test_login_disabled_account(api):
    accounts = (await api.get("/api/collections/accounts")).json()["data"]
    accounts[0]["status"] = "disabled"
    await api.put("/api/collections/accounts", json={"data": accounts})

    response = await api.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 403


async def test_login_reseeds_admin_after_accounts_cleared(api):
    await api.delete("/api/collections/accounts")

    response = await api.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200


async def test_me_rejects_bad_token(api):
    response = await api.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


async def test_logout(api):
    assert (await api.post("/api/auth/logout")).json() == {"ok": True}
