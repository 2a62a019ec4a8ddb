"""Power status tracking: ON/OFF transitions and outage durations.

The current status is always the newest `power_status` row; nothing is held
in process memory between calls.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from powerswitch.config import settings
from powerswitch.errors import ClockOrderingError, ValidationError
from powerswitch.schemas.common import as_utc
from powerswitch.schemas.notification import NotificationRecord
from powerswitch.schemas.power import PowerState, PowerStatusRecord
from powerswitch.store import POWER_STATUS, RecordStore

logger = logging.getLogger(__name__)


@dataclass
class Transition:
    previous: PowerStatusRecord | None
    status: PowerState
    timestamp: datetime
    duration_minutes: int | None = None
    anomaly: ClockOrderingError | None = None

    def as_values(self, notes: str | None = None) -> dict:
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "duration_minutes": self.duration_minutes,
            "notes": notes,
        }


@dataclass
class TransitionResult:
    previous: PowerStatusRecord | None
    record: PowerStatusRecord
    anomaly: ClockOrderingError | None = None
    notification: NotificationRecord | None = None

    @property
    def notable(self) -> bool:
        return is_notable(self.previous, self.record)


@dataclass
class OutageStats:
    outage_count: int = 0
    total_outage_minutes: int = 0
    restorations: list[int] = field(default_factory=list)


def _round_minutes(delta: timedelta) -> int:
    # Half rounds up, matching how durations are shown on the dashboard
    return int(math.floor(delta.total_seconds() / 60.0 + 0.5))


def build_transition(previous: PowerStatusRecord | None, new_status: PowerState, now: datetime) -> Transition:
    """Compute the record to append when moving to `new_status` at `now`."""
    try:
        new_status = PowerState(new_status)
    except ValueError:
        raise ValidationError("status", new_status, "must be ON or OFF") from None
    now = as_utc(now)
    transition = Transition(previous=previous, status=new_status, timestamp=now)

    if previous is not None and now < previous.timestamp:
        transition.anomaly = ClockOrderingError(previous.timestamp, now)

    if new_status == PowerState.ON and previous is not None and previous.status == PowerState.OFF:
        transition.duration_minutes = max(0, _round_minutes(now - previous.timestamp))

    return transition


def is_notable(previous: PowerStatusRecord | None, record: PowerStatusRecord) -> bool:
    return previous is not None and previous.status != record.status


def get_current_status(store: RecordStore) -> PowerStatusRecord | None:
    records = store.select_latest(POWER_STATUS, "timestamp", 1)
    return records[0] if records else None


def get_status_history(store: RecordStore, limit: int = 10) -> list[PowerStatusRecord]:
    return store.select_latest(POWER_STATUS, "timestamp", limit)


def record_transition(
    store: RecordStore,
    new_status: PowerState,
    now: datetime | None = None,
    notes: str | None = None,
) -> TransitionResult:
    """Append a status record, computing the outage duration on OFF -> ON.

    A repeated status is still appended (ON -> ON carries no duration).
    A timestamp earlier than the previous record is logged as an anomaly but
    does not block the insert.
    """
    now = now or datetime.now(timezone.utc)
    previous = get_current_status(store)
    transition = build_transition(previous, new_status, now)

    if transition.anomaly is not None:
        logger.warning("Clock ordering anomaly: %s", transition.anomaly)

    record = store.insert(POWER_STATUS, transition.as_values(notes))
    logger.info(
        "Power status %s -> %s%s",
        previous.status.value if previous else "none",
        record.status.value,
        f" after {record.duration_minutes} min outage" if record.duration_minutes is not None else "",
    )
    return TransitionResult(previous=previous, record=record, anomaly=transition.anomaly)


def day_bounds(day: date, tz_name: str | None = None) -> tuple[datetime, datetime]:
    tz = ZoneInfo(tz_name or settings.timezone)
    start = datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
    return start, start + timedelta(days=1)


def outage_stats(store: RecordStore, day: date, tz_name: str | None = None) -> OutageStats:
    """Outages started on `day` and the minutes of outages restored on `day`."""
    start, end = day_bounds(day, tz_name)
    stats = OutageStats()
    for rec in store.select_latest(POWER_STATUS, "timestamp", since=start):
        if rec.timestamp >= end:
            continue
        if rec.status == PowerState.OFF:
            stats.outage_count += 1
        elif rec.duration_minutes is not None:
            stats.restorations.append(rec.duration_minutes)
    stats.total_outage_minutes = sum(stats.restorations)
    return stats
