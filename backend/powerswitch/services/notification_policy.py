"""Decides which notifications to emit, persists them and pushes them to Telegram."""

import logging
import math
from dataclasses import dataclass
from datetime import date

from powerswitch.errors import DeliveryFailure, StoreUnavailableError
from powerswitch.schemas.notification import (
    NotificationDraft,
    NotificationRecord,
    NotificationStatus,
    NotificationType,
)
from powerswitch.schemas.power import ConsumptionSummary, PowerState, PowerStatusRecord
from powerswitch.services import log_recorder
from powerswitch.services.telegram_client import TelegramNotifier, format_notification
from powerswitch.store import NOTIFICATIONS, RecordStore

logger = logging.getLogger(__name__)

DEFAULT_TEST_MESSAGE = "This is a test notification to verify the system is working properly."


# --- Events ---

@dataclass
class PowerTransition:
    previous: PowerStatusRecord | None
    record: PowerStatusRecord


@dataclass
class ThresholdBreach:
    power_limit: object
    latest_power_value: object


@dataclass
class ManualTest:
    message: str | None = None


@dataclass
class MaintenanceAlert:
    message: str


@dataclass
class DailySummary:
    day: date
    units: float
    cost: float
    status: PowerState | None
    outage_count: int
    total_outage_minutes: int


@dataclass
class WeeklyReport:
    summary: ConsumptionSummary


Event = PowerTransition | ThresholdBreach | ManualTest | MaintenanceAlert | DailySummary | WeeklyReport


def parse_number(value) -> float | None:
    """Finite float from a number or numeric string, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _fmt(value: float) -> str:
    return f"{value:g}"


# --- Rules ---

def _power_transition(event: PowerTransition) -> NotificationDraft | None:
    previous, record = event.previous, event.record
    if previous is None or previous.status == record.status:
        return None

    metadata = {
        "previous_status": previous.status.value,
        "status": record.status.value,
        "timestamp": record.timestamp.isoformat(),
        "duration_minutes": record.duration_minutes,
    }
    if record.status == PowerState.OFF:
        return NotificationDraft(
            title="🔴 Power Outage",
            message="Power outage detected. We will notify you when power is restored.",
            type=NotificationType.POWER_OUTAGE,
            metadata=metadata,
        )

    message = "Power has been restored"
    if record.duration_minutes is not None:
        message += f" after {record.duration_minutes} minutes"
    return NotificationDraft(
        title="🟢 Power Restored",
        message=message + ".",
        type=NotificationType.POWER_RESTORED,
        metadata=metadata,
    )


def _threshold(event: ThresholdBreach) -> NotificationDraft | None:
    limit = parse_number(event.power_limit)
    latest = parse_number(event.latest_power_value)
    if limit is None or latest is None:
        logger.debug(
            "Threshold check skipped: limit=%r latest=%r",
            event.power_limit, event.latest_power_value,
        )
        return None
    if latest <= limit:
        return None
    return NotificationDraft(
        title="⚠️ Power Limit Exceeded",
        message=f"Power limit exceeded: {_fmt(limit)} W (latest reading {_fmt(latest)} W).",
        type=NotificationType.MAINTENANCE_ALERT,
        metadata={"power_limit": limit, "latest_power_value": latest},
    )


def _daily_summary(event: DailySummary) -> NotificationDraft:
    status = event.status.value if event.status else "Unknown"
    lines = [
        f"Consumption: {_fmt(round(event.units, 2))} units",
        f"Estimated Cost: {event.cost:.2f}",
        f"Current Status: {status}",
        f"Outages Today: {event.outage_count}",
        f"Total Outage Time: {event.total_outage_minutes} minutes",
        f"Date: {event.day.isoformat()}",
    ]
    return NotificationDraft(
        title="📊 Daily Power Summary",
        message="\n".join(lines),
        type=NotificationType.DAILY_SUMMARY,
        metadata={
            "day": event.day.isoformat(),
            "units": event.units,
            "cost": event.cost,
            "status": status,
            "outage_count": event.outage_count,
            "total_outage_minutes": event.total_outage_minutes,
        },
    )


def _weekly_report(event: WeeklyReport) -> NotificationDraft:
    s = event.summary
    lines = [
        f"Days recorded: {s.records}",
        f"Total Consumption: {s.total_units:.2f} units",
        f"Total Cost: {s.total_cost:.2f}",
        f"Daily Average: {s.average_daily:.2f} units",
        f"Trend: {s.trend_label.value} ({s.trend:+.1f} units)",
    ]
    return NotificationDraft(
        title="📈 Weekly Power Report",
        message="\n".join(lines),
        type=NotificationType.WEEKLY_REPORT,
        metadata=s.model_dump(mode="json"),
    )


def evaluate(event: Event) -> NotificationDraft | None:
    """Pure decision: the notification an event warrants, if any."""
    if isinstance(event, PowerTransition):
        return _power_transition(event)
    if isinstance(event, ThresholdBreach):
        return _threshold(event)
    if isinstance(event, ManualTest):
        return NotificationDraft(
            title="🧪 Test Notification",
            message=event.message or DEFAULT_TEST_MESSAGE,
            type=NotificationType.SYSTEM,
        )
    if isinstance(event, MaintenanceAlert):
        return NotificationDraft(
            title="⚠️ Maintenance Alert",
            message=event.message,
            type=NotificationType.MAINTENANCE_ALERT,
        )
    if isinstance(event, DailySummary):
        return _daily_summary(event)
    if isinstance(event, WeeklyReport):
        return _weekly_report(event)
    raise TypeError(f"Unsupported notification event: {type(event).__name__}")


async def dispatch(store: RecordStore, notifier: TelegramNotifier, event: Event) -> NotificationRecord | None:
    """Evaluate, persist as unread, then try one Telegram delivery.

    Delivery problems are logged; the stored notification is kept either way.
    """
    draft = evaluate(event)
    if draft is None:
        return None

    record = store.insert(NOTIFICATIONS, {
        "title": draft.title,
        "message": draft.message,
        "type": draft.type,
        "status": NotificationStatus.UNREAD,
        "telegram_sent": False,
        "metadata": draft.metadata,
    })
    log_recorder.record(
        store,
        log_recorder.NOTIFICATION_CREATED,
        f"Notification created: {draft.title}",
        {"notification_id": record.id, "type": draft.type},
    )

    try:
        result = await notifier.deliver(format_notification(draft.title, draft.message))
    except DeliveryFailure as e:
        logger.error("Telegram delivery for notification %d failed: %s", record.id, e)
        return record

    if not result.ok:
        logger.warning("Notification %d stored but not delivered to Telegram", record.id)
        return record

    patch = {"telegram_sent": True, "telegram_message_id": result.message_id}
    try:
        store.update(NOTIFICATIONS, "id", record.id, patch)
    except StoreUnavailableError as e:
        logger.warning("Could not mark notification %d as sent: %s", record.id, e)
        return record
    return record.model_copy(update=patch)


# --- Management ---

def list_notifications(store: RecordStore, limit: int = 50, status: NotificationStatus | None = None) -> list[NotificationRecord]:
    filters = {"status": status} if status else {}
    return store.select_latest(NOTIFICATIONS, "created_at", limit, **filters)


def unread_count(store: RecordStore) -> int:
    return store.count(NOTIFICATIONS, status=NotificationStatus.UNREAD)


def mark_read(store: RecordStore, notification_id: int) -> bool:
    updated = store.update(NOTIFICATIONS, "id", notification_id, {"status": NotificationStatus.READ})
    if updated:
        log_recorder.record(
            store, log_recorder.NOTIFICATION_READ,
            f"Notification {notification_id} marked as read",
            {"notification_id": notification_id},
        )
    return bool(updated)


def mark_unread(store: RecordStore, notification_id: int) -> bool:
    updated = store.update(NOTIFICATIONS, "id", notification_id, {"status": NotificationStatus.UNREAD})
    if updated:
        log_recorder.record(
            store, log_recorder.NOTIFICATION_UNREAD,
            f"Notification {notification_id} marked as unread",
            {"notification_id": notification_id},
        )
    return bool(updated)


def mark_all_read(store: RecordStore) -> int:
    updated = store.update(NOTIFICATIONS, "status", NotificationStatus.UNREAD, {"status": NotificationStatus.READ})
    if updated:
        log_recorder.record(
            store, log_recorder.NOTIFICATIONS_READ_ALL,
            f"{updated} notifications marked as read",
            {"count": updated},
        )
    return updated


def delete_notification(store: RecordStore, notification_id: int) -> bool:
    deleted = store.delete(NOTIFICATIONS, "id", notification_id)
    if deleted:
        log_recorder.record(
            store, log_recorder.NOTIFICATION_DELETED,
            f"Notification {notification_id} deleted",
            {"notification_id": notification_id},
        )
    return bool(deleted)
