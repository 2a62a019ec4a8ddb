import logging
from datetime import datetime, timezone

from powerswitch.schemas.common import as_utc
from powerswitch.schemas.power import MeterReadingRecord
from powerswitch.store import METER_READINGS, RecordStore

logger = logging.getLogger(__name__)


def add_reading(
    store: RecordStore,
    voltage: float | None = None,
    current: float | None = None,
    power: float | None = None,
    units: float | None = None,
    source: str | None = None,
    recorded_at: datetime | None = None,
) -> MeterReadingRecord:
    recorded_at = as_utc(recorded_at) if recorded_at else datetime.now(timezone.utc)
    record = store.insert(METER_READINGS, {
        "source": source,
        "voltage": voltage,
        "current": current,
        "power": power,
        "units": units,
        "recorded_at": recorded_at,
    })
    logger.debug("Meter reading %d: %s W", record.id, power)
    return record


def get_latest_reading(store: RecordStore) -> MeterReadingRecord | None:
    records = store.select_latest(METER_READINGS, "recorded_at", 1)
    return records[0] if records else None
