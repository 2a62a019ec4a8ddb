import pytest

from powerswitch.store import get_optional_store, get_store


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_power_status_flow(client, notifier):
    resp = await client.get("/api/v1/power/status")
    assert resp.status_code == 200
    assert resp.json() is None

    resp = await client.post("/api/v1/power/status", json={"status": "ON"})
    assert resp.status_code == 201
    assert resp.json()["notification"] is None

    resp = await client.post("/api/v1/power/status", json={"status": "OFF", "notes": "storm"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["record"]["status"] == "OFF"
    assert data["previous"]["status"] == "ON"
    assert data["notification"]["type"] == "power_outage"
    assert data["clock_anomaly"] is None
    assert len(notifier.sent) == 1

    resp = await client.get("/api/v1/power/history", params={"limit": 5})
    assert [r["status"] for r in resp.json()] == ["OFF", "ON"]


@pytest.mark.asyncio
async def test_power_status_rejects_unknown_state(client):
    resp = await client.post("/api/v1/power/status", json={"status": "BROWNOUT"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_consumption_endpoints(client):
    body = {"reading_date": "2026-03-01", "units_consumed": 10, "cost_per_unit": 4.0}
    resp = await client.post("/api/v1/consumption/", json=body)
    assert resp.status_code == 201
    assert resp.json()["total_cost"] == 40.0

    body = {"reading_date": "2026-03-01", "units_consumed": 2.5, "cost_per_unit": 8.0}
    resp = await client.post("/api/v1/consumption/", json=body)
    data = resp.json()
    assert data["units_consumed"] == 12.5
    assert data["cost_per_unit"] == 4.0

    resp = await client.get("/api/v1/consumption/")
    assert len(resp.json()) == 1

    resp = await client.get("/api/v1/consumption/summary")
    summary = resp.json()
    assert summary["total_units"] == 12.5
    assert summary["total_cost"] == 50.0
    assert summary["records"] == 1


@pytest.mark.asyncio
async def test_negative_consumption_rejected(client):
    resp = await client.post("/api/v1/consumption/", json={"units_consumed": -3, "cost_per_unit": 4.0})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"] == "validation_error"
    assert data["field"] == "units_consumed"


@pytest.mark.asyncio
async def test_readings_and_threshold(client):
    resp = await client.put("/api/v1/settings/", json={"power_limit": "1000", "data_source_id": "meter-7"})
    assert resp.status_code == 200
    assert resp.json()["power_limit"] == "1000"
    assert resp.json()["notification"] is None

    resp = await client.post("/api/v1/readings/", json={"voltage": 230, "power": 1200})
    assert resp.status_code == 201
    data = resp.json()
    assert data["reading"]["source"] == "meter-7"
    assert data["notification"]["type"] == "maintenance_alert"

    resp = await client.get("/api/v1/readings/latest")
    assert resp.json()["power"] == 1200

    resp = await client.get("/api/v1/settings/")
    assert resp.json()["data_source_id"] == "meter-7"
    assert resp.json()["telegram_configured"] is True


@pytest.mark.asyncio
async def test_settings_without_chat_id_not_configured(client, notifier):
    notifier.chat_id = ""
    resp = await client.get("/api/v1/settings/")
    assert resp.json()["telegram_configured"] is False

    resp = await client.put("/api/v1/settings/", json={"data_source_id": "meter-1"})
    assert resp.json()["telegram_configured"] is False


@pytest.mark.asyncio
async def test_notification_management(client):
    resp = await client.post("/api/v1/notifications/test")
    assert resp.status_code == 201
    first = resp.json()
    assert first["type"] == "system"
    assert first["status"] == "unread"

    resp = await client.post("/api/v1/notifications/maintenance", json={"message": "Meter swap"})
    assert resp.status_code == 201

    resp = await client.get("/api/v1/notifications/unread-count")
    assert resp.json() == {"unread": 2}

    resp = await client.post(f"/api/v1/notifications/{first['id']}/read")
    assert resp.status_code == 200
    resp = await client.get("/api/v1/notifications/", params={"status": "unread"})
    assert len(resp.json()) == 1

    resp = await client.post("/api/v1/notifications/read-all")
    assert resp.json() == {"updated": 1}

    resp = await client.post(f"/api/v1/notifications/{first['id']}/unread")
    assert resp.status_code == 200
    resp = await client.get("/api/v1/notifications/unread-count")
    assert resp.json() == {"unread": 1}
    resp = await client.post("/api/v1/notifications/9999/unread")
    assert resp.status_code == 404

    resp = await client.delete(f"/api/v1/notifications/{first['id']}")
    assert resp.status_code == 200
    resp = await client.delete(f"/api/v1/notifications/{first['id']}")
    assert resp.status_code == 404
    resp = await client.post("/api/v1/notifications/9999/read")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_custom_test_message(client):
    resp = await client.post("/api/v1/notifications/test", json={"message": "hello"})
    assert resp.json()["message"] == "hello"


@pytest.mark.asyncio
async def test_daily_summary_endpoint(client):
    resp = await client.post("/api/v1/notifications/daily-summary")
    assert resp.status_code == 201
    assert resp.json()["type"] == "daily_summary"


@pytest.mark.asyncio
async def test_logs_search(client):
    await client.post("/api/v1/power/status", json={"status": "OFF"})
    await client.post("/api/v1/consumption/", json={"units_consumed": 1, "cost_per_unit": 4.0})

    resp = await client.get("/api/v1/logs/")
    actions = {e["action"] for e in resp.json()}
    assert {"POWER_STATUS_UPDATE", "CONSUMPTION_RECORD_ADDED"} <= actions

    resp = await client.get("/api/v1/logs/", params={"action": "POWER_STATUS_UPDATE"})
    assert len(resp.json()) == 1

    resp = await client.get("/api/v1/logs/", params={"search": "consumption", "action": "all"})
    assert all("consumption" in e["description"].lower() for e in resp.json())


@pytest.mark.asyncio
async def test_dashboard(client):
    await client.post("/api/v1/power/status", json={"status": "ON"})
    await client.post("/api/v1/consumption/", json={"units_consumed": 6, "cost_per_unit": 4.0})

    resp = await client.get("/api/v1/dashboard/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["power_status"]["status"] == "ON"
    assert data["consumption"]["total"] == 6
    assert data["system"]["uptime"] == "✅ Online"
    assert data["system"]["configured"] is True
    assert "poll_interval_seconds" in data


@pytest.mark.asyncio
async def test_dashboard_actions(client):
    resp = await client.post("/api/v1/dashboard/", json={
        "action": "update_power_status", "data": {"status": "OFF"},
    })
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "OFF"

    resp = await client.post("/api/v1/dashboard/", json={
        "action": "add_consumption", "data": {"units_consumed": 3},
    })
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    resp = await client.post("/api/v1/dashboard/", json={"action": "reboot", "data": {}})
    assert resp.status_code == 400
    assert "Unknown action" in resp.json()["detail"]

    resp = await client.post("/api/v1/dashboard/", json={
        "action": "update_power_status", "data": {"status": "DIM"},
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_dashboard_without_store(client):
    from powerswitch.errors import StoreUnavailableError
    from powerswitch.main import app

    def unavailable():
        raise StoreUnavailableError()

    app.dependency_overrides[get_optional_store] = lambda: None
    app.dependency_overrides[get_store] = unavailable

    resp = await client.get("/api/v1/dashboard/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["system"]["configured"] is False
    assert data["power_status"] is None

    resp = await client.get("/api/v1/power/status")
    assert resp.status_code == 503
    assert resp.json() == {"error": "store_unavailable", "detail": "Database not configured"}


@pytest.mark.asyncio
async def test_telegram_webhook(client, notifier):
    update = {"update_id": 1, "message": {"chat": {"id": 42}, "text": "/help"}}
    resp = await client.post("/api/v1/telegram/webhook", json=update)
    assert resp.json() == {"ok": True, "replied": True}
    assert notifier.sent[0]["chat_id"] == "42"

    resp = await client.post(
        "/api/v1/telegram/webhook", content=b"not json",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 200
    assert resp.json()["ok"] is False
