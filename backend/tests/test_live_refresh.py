"""Tests for the dashboard snapshot, change-feed refresh, scheduler and simulator."""

import random
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from conftest import T0
from powerswitch.errors import StoreUnavailableError
from powerswitch.schemas.power import PowerState
from powerswitch.services import consumption, live_refresh, status_tracker
from powerswitch.tasks import scheduler, simulator


def test_empty_store_snapshot(store):
    snap = live_refresh.build_snapshot(store)
    assert snap.power_status is None
    assert snap.system.uptime == "Standby"
    assert snap.consumption.records == 0
    assert snap.notifications.unread == 0


def test_snapshot_reflects_offline(store):
    status_tracker.record_transition(store, "OFF", now=T0)
    consumption.record_reading(store, 4, 4.5, reading_date=date(2026, 3, 1), now=T0)

    snap = live_refresh.build_snapshot(store)
    assert snap.power_status.status == PowerState.OFF
    assert snap.system.uptime == "⚠️ Offline"
    assert snap.consumption.total == 4
    assert snap.consumption_summary.total_cost == pytest.approx(18.0)


def test_unconfigured_snapshot():
    snap = live_refresh.unconfigured_snapshot()
    assert snap.system.configured is False
    assert snap.system.uptime == "⚠️ Not configured"


def test_refresh_bumps_version(store):
    assert live_refresh.get_cached_snapshot() == (0, None)
    live_refresh.refresh_snapshot(store)
    live_refresh.refresh_snapshot(store)
    version, snap = live_refresh.get_cached_snapshot()
    assert version == 2
    assert snap is not None


def test_refresh_skips_when_store_fails(store):
    with patch.object(live_refresh, "build_snapshot", side_effect=StoreUnavailableError("down")):
        assert live_refresh.refresh_snapshot(store) is None
    assert live_refresh.get_cached_snapshot() == (0, None)


def test_writes_trigger_refresh(store):
    live_refresh.attach(store)
    status_tracker.record_transition(store, "ON", now=T0)

    version, snap = live_refresh.get_cached_snapshot()
    assert version == 1
    assert snap.power_status.status == PowerState.ON

    live_refresh.detach()
    status_tracker.record_transition(store, "OFF", now=T0 + timedelta(minutes=1))
    assert live_refresh.get_cached_snapshot()[0] == 1


@pytest.mark.asyncio
async def test_live_endpoint(client, store):
    resp = await client.get("/api/v1/dashboard/live")
    assert resp.json() == {"version": 0, "snapshot": None}

    live_refresh.refresh_snapshot(store)
    resp = await client.get("/api/v1/dashboard/live")
    assert resp.json()["version"] == 1
    assert resp.json()["snapshot"]["system"]["uptime"] == "Standby"


# --- scheduler ---

def test_scheduler_registers_jobs():
    with patch("powerswitch.tasks.scheduler.BackgroundScheduler") as mock_cls:
        scheduler.start_scheduler()
        instance = mock_cls.return_value
        job_ids = [c.kwargs["id"] for c in instance.add_job.call_args_list]
        assert job_ids == ["dashboard_refresh", "daily_summary", "weekly_report"]
        instance.start.assert_called_once()

        scheduler.stop_scheduler()
        instance.shutdown.assert_called_once_with(wait=False)
    assert scheduler.is_running() is False


# --- simulator ---

def test_next_status():
    rng = random.Random(0)
    assert simulator.next_status(None, rng) == PowerState.ON

    class Always:
        def random(self):
            return 0.0

    class Never:
        def random(self):
            return 0.99

    assert simulator.next_status(PowerState.ON, Always()) == PowerState.OFF
    assert simulator.next_status(PowerState.OFF, Always()) == PowerState.ON
    assert simulator.next_status(PowerState.ON, Never()) is None


def test_base_consumption_peaks():
    rng = random.Random(1)
    assert 10 <= simulator.base_consumption(19, rng) <= 16
    assert 3 <= simulator.base_consumption(2, rng) <= 5


@pytest.mark.asyncio
async def test_simulate_tick_writes_everything(store, notifier):
    rng = random.Random(42)
    await simulator.simulate_tick(store, notifier, rng, now=T0)

    current = status_tracker.get_current_status(store)
    assert current.status == PowerState.ON
    assert len(consumption.get_recent_consumption(store)) == 1
    assert store.count("meter_readings") == 1
