"""Read side of the dashboard, recomputed on change-feed events and timer ticks.

`refresh_snapshot` only reads, so it is safe to run any number of times, in
any order, concurrently with writes. The cached snapshot is a convenience for
polling clients; the store stays the only source of truth.
"""

import logging
import threading
from datetime import datetime, timezone

from powerswitch.errors import StoreUnavailableError
from powerswitch.schemas.dashboard import (
    ConsumptionOverview,
    DashboardSnapshot,
    NotificationOverview,
    SystemOverview,
)
from powerswitch.schemas.power import PowerState
from powerswitch.services import consumption, meter_readings, notification_policy, status_tracker
from powerswitch.services.change_feed import Subscription
from powerswitch.store import (
    METER_READINGS,
    NOTIFICATIONS,
    POWER_CONSUMPTION,
    POWER_STATUS,
    RecordStore,
)

logger = logging.getLogger(__name__)

WATCHED_TABLES = (POWER_STATUS, POWER_CONSUMPTION, NOTIFICATIONS, METER_READINGS)

_lock = threading.Lock()
_snapshot: DashboardSnapshot | None = None
_version = 0
_subscriptions: list[Subscription] = []


def build_snapshot(store: RecordStore, consumption_days: int = 7) -> DashboardSnapshot:
    now = datetime.now(timezone.utc)
    current = status_tracker.get_current_status(store)
    records = consumption.get_recent_consumption(store, consumption_days)
    summary = consumption.summarize(records)

    if current is None:
        uptime = "Standby"
    elif current.status == PowerState.ON:
        uptime = "✅ Online"
    else:
        uptime = "⚠️ Offline"

    return DashboardSnapshot(
        as_of=now,
        power_status=current,
        consumption=ConsumptionOverview(
            total=summary.total_units,
            average=summary.average_daily,
            records=summary.records,
        ),
        consumption_summary=summary,
        latest_reading=meter_readings.get_latest_reading(store),
        notifications=NotificationOverview(unread=notification_policy.unread_count(store)),
        system=SystemOverview(uptime=uptime, last_update=now),
    )


def unconfigured_snapshot() -> DashboardSnapshot:
    now = datetime.now(timezone.utc)
    return DashboardSnapshot(
        as_of=now,
        system=SystemOverview(uptime="⚠️ Not configured", last_update=now, configured=False),
    )


def refresh_snapshot(store: RecordStore) -> DashboardSnapshot | None:
    global _snapshot, _version
    try:
        snapshot = build_snapshot(store)
    except StoreUnavailableError as e:
        logger.warning("Dashboard refresh skipped: %s", e)
        return None
    with _lock:
        _snapshot = snapshot
        _version += 1
    return snapshot


def get_cached_snapshot() -> tuple[int, DashboardSnapshot | None]:
    with _lock:
        return _version, _snapshot


def attach(store: RecordStore) -> list[Subscription]:
    """Refresh the cached snapshot whenever a watched table changes."""
    def _on_change(table: str, event_type: str, payload):
        logger.debug("Change on %s (%s); refreshing dashboard", table, event_type)
        refresh_snapshot(store)

    subs = [store.subscribe(table, "*", _on_change) for table in WATCHED_TABLES]
    _subscriptions.extend(subs)
    return subs


def detach():
    while _subscriptions:
        _subscriptions.pop().unsubscribe()


def reset():
    global _snapshot, _version
    detach()
    with _lock:
        _snapshot = None
        _version = 0
