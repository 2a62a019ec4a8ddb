"""User-triggered actions: primary write first, then audit log and notifications.

Only the primary write can fail the action. The log entry and the
notification are separate steps; a failure in either is logged and leaves the
primary write in place, and the primary write is never retried.
"""

import logging
from datetime import date, datetime

from powerswitch.config import settings
from powerswitch.errors import PowerSwitchError
from powerswitch.schemas.notification import NotificationRecord
from powerswitch.schemas.power import ConsumptionRecord, MeterReadingRecord, PowerState
from powerswitch.services import (
    app_settings,
    consumption,
    log_recorder,
    meter_readings,
    notification_policy,
    status_tracker,
)
from powerswitch.services.notification_policy import (
    DailySummary,
    MaintenanceAlert,
    ManualTest,
    PowerTransition,
    ThresholdBreach,
    WeeklyReport,
)
from powerswitch.services.status_tracker import TransitionResult
from powerswitch.services.telegram_client import TelegramNotifier
from powerswitch.store import POWER_CONSUMPTION, RecordStore

logger = logging.getLogger(__name__)


async def _notify(store: RecordStore, notifier: TelegramNotifier, event) -> NotificationRecord | None:
    try:
        return await notification_policy.dispatch(store, notifier, event)
    except Exception as e:
        # The primary write is already committed; nothing here may fail the action
        logger.error("Notification step failed for %s: %s", type(event).__name__, e)
        return None


async def report_power_status(
    store: RecordStore,
    notifier: TelegramNotifier,
    new_status: PowerState,
    now: datetime | None = None,
    notes: str | None = None,
) -> TransitionResult:
    result = status_tracker.record_transition(store, new_status, now, notes)
    record = result.record

    if result.anomaly is not None:
        log_recorder.record(
            store, log_recorder.CLOCK_ORDERING_ANOMALY, str(result.anomaly),
            {
                "status_id": record.id,
                "previous_timestamp": result.anomaly.previous_at,
                "timestamp": result.anomaly.new_at,
            },
        )

    description = f"Power status changed to {record.status.value}"
    if record.duration_minutes is not None:
        description += f" (outage duration: {record.duration_minutes}m)"
    log_recorder.record(store, log_recorder.POWER_STATUS_UPDATE, description, {
        "previous_status": result.previous.status if result.previous else None,
        "new_status": record.status,
        "duration_minutes": record.duration_minutes,
    })

    result.notification = await _notify(store, notifier, PowerTransition(result.previous, record))
    return result


def add_consumption_reading(
    store: RecordStore,
    units,
    cost_per_unit=None,
    reading_date: date | None = None,
    now: datetime | None = None,
    meter_reading: float | None = None,
    notes: str | None = None,
) -> ConsumptionRecord:
    if cost_per_unit is None:
        cost_per_unit = settings.default_cost_per_unit
    record, created = consumption.accumulate_reading(
        store, units, cost_per_unit, reading_date, now, meter_reading, notes,
    )

    if created:
        action = log_recorder.CONSUMPTION_RECORD_ADDED
        description = f"Added consumption record for {record.reading_date.isoformat()}"
    else:
        action = log_recorder.CONSUMPTION_RECORD_UPDATED
        description = f"Accumulated consumption reading for {record.reading_date.isoformat()}"
    log_recorder.record(store, action, description, {
        "reading_date": record.reading_date,
        "units_added": float(units),
        "units_consumed": record.units_consumed,
        "cost_per_unit": record.cost_per_unit,
        "total_cost": record.total_cost,
    })
    return record


async def record_meter_reading(
    store: RecordStore,
    notifier: TelegramNotifier,
    voltage: float | None = None,
    current: float | None = None,
    power: float | None = None,
    units: float | None = None,
    recorded_at: datetime | None = None,
) -> tuple[MeterReadingRecord, NotificationRecord | None]:
    source = app_settings.get_value(store, app_settings.DATA_SOURCE_ID)
    record = meter_readings.add_reading(store, voltage, current, power, units, source, recorded_at)
    log_recorder.record(
        store, log_recorder.METER_READING_RECORDED,
        f"Meter reading recorded: {record.power if record.power is not None else '-'} W",
        {"reading_id": record.id, "source": source, "power": record.power},
    )
    notification = await check_power_limit(store, notifier, latest_power_value=record.power)
    return record, notification


async def check_power_limit(
    store: RecordStore,
    notifier: TelegramNotifier,
    latest_power_value=None,
) -> NotificationRecord | None:
    """Run the threshold rule against the saved limit and a (default: latest) power reading."""
    try:
        limit = app_settings.get_value(store, app_settings.POWER_LIMIT)
        if latest_power_value is None:
            latest = meter_readings.get_latest_reading(store)
            latest_power_value = latest.power if latest else None
    except PowerSwitchError as e:
        logger.error("Power limit check skipped: %s", e)
        return None
    return await _notify(store, notifier, ThresholdBreach(limit, latest_power_value))


async def update_settings(
    store: RecordStore,
    notifier: TelegramNotifier,
    power_limit: str | None = None,
    data_source_id: str | None = None,
) -> tuple[dict[str, str | None], NotificationRecord | None]:
    changed = {}
    if power_limit is not None:
        app_settings.set_value(store, app_settings.POWER_LIMIT, power_limit)
        changed[app_settings.POWER_LIMIT] = power_limit
    if data_source_id is not None:
        app_settings.set_value(store, app_settings.DATA_SOURCE_ID, data_source_id)
        changed[app_settings.DATA_SOURCE_ID] = data_source_id

    if changed:
        log_recorder.record(
            store, log_recorder.SETTINGS_UPDATED,
            "Updated settings: " + ", ".join(sorted(changed)),
            changed,
        )

    notification = None
    if power_limit is not None:
        notification = await check_power_limit(store, notifier)
    return app_settings.get_all(store), notification


async def send_test_notification(store: RecordStore, notifier: TelegramNotifier, message: str | None = None) -> NotificationRecord | None:
    return await notification_policy.dispatch(store, notifier, ManualTest(message))


async def send_maintenance_alert(store: RecordStore, notifier: TelegramNotifier, message: str) -> NotificationRecord | None:
    return await notification_policy.dispatch(store, notifier, MaintenanceAlert(message))


async def send_daily_summary(
    store: RecordStore,
    notifier: TelegramNotifier,
    day: date | None = None,
) -> NotificationRecord | None:
    day = day or consumption.today()
    reading = store.select_by_key(POWER_CONSUMPTION, "reading_date", day)
    current = status_tracker.get_current_status(store)
    stats = status_tracker.outage_stats(store, day)
    event = DailySummary(
        day=day,
        units=reading.units_consumed if reading else 0.0,
        cost=reading.total_cost if reading else 0.0,
        status=current.status if current else None,
        outage_count=stats.outage_count,
        total_outage_minutes=stats.total_outage_minutes,
    )
    return await notification_policy.dispatch(store, notifier, event)


async def send_weekly_report(store: RecordStore, notifier: TelegramNotifier) -> NotificationRecord | None:
    records = consumption.get_recent_consumption(store, limit=7)
    return await notification_policy.dispatch(store, notifier, WeeklyReport(consumption.summarize(records)))
