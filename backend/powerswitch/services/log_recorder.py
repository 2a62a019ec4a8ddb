"""Audit trail for state-changing actions.

Writing a log entry is best effort: a failure is reported to the operator log
and never unwinds the action that triggered it.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from powerswitch.errors import PowerSwitchError
from powerswitch.schemas.system_log import SystemLogEntry
from powerswitch.store import SYSTEM_LOGS, RecordStore

logger = logging.getLogger(__name__)

POWER_STATUS_UPDATE = "POWER_STATUS_UPDATE"
CLOCK_ORDERING_ANOMALY = "CLOCK_ORDERING_ANOMALY"
CONSUMPTION_RECORD_ADDED = "CONSUMPTION_RECORD_ADDED"
CONSUMPTION_RECORD_UPDATED = "CONSUMPTION_RECORD_UPDATED"
METER_READING_RECORDED = "METER_READING_RECORDED"
NOTIFICATION_CREATED = "NOTIFICATION_CREATED"
NOTIFICATION_READ = "NOTIFICATION_READ"
NOTIFICATION_UNREAD = "NOTIFICATION_UNREAD"
NOTIFICATIONS_READ_ALL = "NOTIFICATIONS_READ_ALL"
NOTIFICATION_DELETED = "NOTIFICATION_DELETED"
SETTINGS_UPDATED = "SETTINGS_UPDATED"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return value


def record(store: RecordStore, action: str, description: str, metadata: dict[str, Any] | None = None) -> None:
    try:
        store.insert(SYSTEM_LOGS, {
            "action": action,
            "description": description,
            "metadata": _jsonable(metadata) if metadata is not None else None,
        })
    except (PowerSwitchError, ValueError) as e:
        logger.warning("Failed to record %s log entry: %s", action, e)


def search_logs(
    store: RecordStore,
    search: str | None = None,
    action: str | None = None,
    limit: int = 100,
) -> list[SystemLogEntry]:
    """Latest log entries, optionally narrowed by action and a case-insensitive text match."""
    filters = {"action": action} if action and action != "all" else {}
    entries = store.select_latest(SYSTEM_LOGS, "created_at", limit, **filters)
    if search:
        needle = search.lower()
        entries = [
            e for e in entries
            if needle in e.description.lower() or needle in (e.action or "").lower()
        ]
    return entries
