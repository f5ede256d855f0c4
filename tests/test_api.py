"""HTTP-level tests against the FastAPI app (in-memory database)."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shippxpress.db.database import get_db
from shippxpress.main import app
from shippxpress.routers.deps import get_zone_resolver
from tests.conftest import StubResolver, make_draft

STAFF = {"X-Actor-Id": "staff-1", "X-Actor-Role": "staff"}
ADMIN = {"X-Actor-Id": "root", "X-Actor-Role": "super_admin"}


@pytest_asyncio.fixture
async def api(session_factory, zone):
    zone_id = zone.id

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_zone_resolver] = lambda: StubResolver(zone_id)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _available_driver(api, zone_id, user_id="drv-1"):
    resp = await api.post("/api/drivers/", headers=STAFF, json={
        "user_id": user_id, "full_name": "Dan Driver", "zone_id": str(zone_id),
    })
    assert resp.status_code == 200
    driver = resp.json()
    assert driver["status"] == "offline"
    resp = await api.patch(f"/api/drivers/{driver['id']}/status", headers=STAFF, json={"status": "available"})
    assert resp.status_code == 200
    return driver["id"]


@pytest.mark.asyncio
async def test_health(api):
    resp = await api.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_order_lifecycle_over_http(api, zone):
    driver_id = await _available_driver(api, zone.id)

    resp = await api.post("/api/orders/", headers=STAFF, json=make_draft())
    assert resp.status_code == 200
    number = resp.json()["order_number"]
    assert resp.json()["status"] == "pending"

    resp = await api.post(f"/api/orders/{number}/assign", headers=STAFF, json={"driver_id": driver_id})
    assert resp.status_code == 200
    assert resp.json()["status"] == "assigned"
    assert resp.json()["zone_id"] == str(zone.id)

    driver_headers = {"X-Actor-Id": "drv-1", "X-Actor-Role": "driver", "X-Driver-Id": driver_id}
    resp = await api.patch(f"/api/orders/{number}/status", headers=driver_headers, json={"status": "picked_up"})
    assert resp.status_code == 200
    resp = await api.patch(f"/api/orders/{number}/status", headers=driver_headers, json={"status": "delivered"})
    assert resp.status_code == 200

    resp = await api.get(f"/api/orders/{number}/history", headers=STAFF)
    assert [h["status"] for h in resp.json()] == ["assigned", "picked_up", "delivered"]

    resp = await api.post(f"/api/orders/{number}/void", headers=STAFF, json={"reason": "too late"})
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "ILLEGAL_TRANSITION"
    assert body["retryable"] is False
    assert body["allowed"] == []


@pytest.mark.asyncio
async def test_busy_driver_conflict(api, zone):
    resp = await api.post("/api/drivers/", headers=STAFF, json={"user_id": "drv-busy", "full_name": "Bea"})
    driver_id = resp.json()["id"]
    await api.patch(f"/api/drivers/{driver_id}/status", headers=STAFF, json={"status": "busy"})
    number = (await api.post("/api/orders/", headers=STAFF, json=make_draft())).json()["order_number"]

    resp = await api.post(f"/api/orders/{number}/assign", headers=STAFF, json={"driver_id": driver_id})
    assert resp.status_code == 409
    assert resp.json()["code"] == "DRIVER_UNAVAILABLE"

    order = (await api.get(f"/api/orders/{number}", headers=STAFF)).json()
    assert order["status"] == "pending"
    assert order["driver_id"] is None


@pytest.mark.asyncio
async def test_invalid_draft_rejected(api):
    resp = await api.post("/api/orders/", headers=STAFF, json=make_draft(packages=[]))
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["retryable"] is False
    assert any("packages" in err["loc"] for err in body["errors"])


@pytest.mark.asyncio
async def test_identity_headers_required(api):
    resp = await api.get("/api/orders/")
    assert resp.status_code == 422
    assert resp.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_client_scope_over_http(api, client_account):
    client_headers = {
        "X-Actor-Id": "client-user", "X-Actor-Role": "client", "X-Client-Id": str(client_account.id),
    }
    own = (await api.post("/api/orders/", headers=client_headers, json=make_draft())).json()
    other = (await api.post("/api/orders/", headers=STAFF, json=make_draft())).json()

    listed = (await api.get("/api/orders/", headers=client_headers)).json()
    assert [o["order_number"] for o in listed] == [own["order_number"]]

    resp = await api.get(f"/api/orders/{other['order_number']}", headers=client_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"

    resp = await api.get(f"/api/admin/clients/{client_account.id}/stats", headers=client_headers)
    assert resp.status_code == 200
    assert resp.json()["total_orders"] == 1


@pytest.mark.asyncio
async def test_driver_cannot_reach_admin(api):
    headers = {"X-Actor-Id": "drv-1", "X-Actor-Role": "driver"}
    resp = await api.get("/api/admin/stats", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "PERMISSION_DENIED"


@pytest.mark.asyncio
async def test_batches_over_http(api):
    resp = await api.post("/api/batches/", headers=STAFF, json={"batch_date": "2026-03-02"})
    assert resp.status_code == 200
    batch = resp.json()
    assert batch["cutoff_time"] == "14:30"
    assert batch["status"] == "open"

    number = (await api.post("/api/orders/", headers=STAFF, json=make_draft())).json()["order_number"]
    resp = await api.post(f"/api/orders/{number}/batch", headers=STAFF, json={"batch_id": batch["id"]})
    assert resp.json()["batch_id"] == batch["id"]

    resp = await api.post(f"/api/batches/{batch['id']}/close", headers=STAFF)
    assert resp.json()["status"] == "closed"
    assert resp.json()["order_count"] == 1

    resp = await api.post(f"/api/batches/{batch['id']}/close", headers=STAFF)
    assert resp.status_code == 409
    assert resp.json()["code"] == "BATCH_CLOSED"


@pytest.mark.asyncio
async def test_zones_and_duplicate_names(api):
    resp = await api.get("/api/zones/", headers=STAFF)
    assert [z["name"] for z in resp.json()] == ["North"]

    resp = await api.post("/api/zones/", headers=STAFF, json={
        "name": "North", "base_address": "x", "center_lat": 1, "center_lng": 1,
    })
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_duplicate_driver_conflict(api, zone):
    await _available_driver(api, zone.id)
    resp = await api.post("/api/drivers/", headers=STAFF, json={"user_id": "drv-1", "full_name": "Dan Again"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONFLICT"
    assert resp.json()["retryable"] is False


@pytest.mark.asyncio
async def test_second_open_batch_for_same_day_conflicts(api):
    first = await api.post("/api/batches/", headers=STAFF, json={"batch_date": "2026-03-02"})
    assert first.status_code == 200
    resp = await api.post("/api/batches/", headers=STAFF, json={"batch_date": "2026-03-02"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONFLICT"
    assert resp.json()["batch_id"] == first.json()["id"]


@pytest.mark.asyncio
async def test_admin_stats_and_activity(api):
    await api.post("/api/orders/", headers=STAFF, json=make_draft())

    stats = (await api.get("/api/admin/stats", headers=ADMIN)).json()
    assert stats["total_orders"] == 1
    assert stats["orders_by_status"]["pending"] == 1

    feed = (await api.get("/api/admin/activity", headers=ADMIN)).json()
    assert feed[0]["action"] == "ORDER_CREATED"
    assert "order_number" in feed[0]["metadata"]


@pytest.mark.asyncio
async def test_only_super_admin_creates_clients(api):
    body = {"name": "Beta Freight", "address": "1 Pier"}
    assert (await api.post("/api/admin/clients", headers=STAFF, json=body)).status_code == 403
    resp = await api.post("/api/admin/clients", headers=ADMIN, json=body)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is True
