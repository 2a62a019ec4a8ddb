"""Daily consumption accumulation and aggregate statistics."""

import logging
import math
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from powerswitch.config import settings
from powerswitch.errors import ValidationError
from powerswitch.schemas.common import as_utc
from powerswitch.schemas.power import ConsumptionRecord, ConsumptionSummary, TrendLabel
from powerswitch.store import POWER_CONSUMPTION, RecordStore

logger = logging.getLogger(__name__)

TREND_WINDOW = 3


def _finite_number(field: str, value) -> float:
    if isinstance(value, bool):
        raise ValidationError(field, value, "must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, value, "must be a number") from None
    if not math.isfinite(number):
        raise ValidationError(field, value, "must be finite")
    return number


def validate_reading(units, cost_per_unit) -> tuple[float, float]:
    units = _finite_number("units_consumed", units)
    cost_per_unit = _finite_number("cost_per_unit", cost_per_unit)
    if units < 0:
        raise ValidationError("units_consumed", units, "must be non-negative")
    if cost_per_unit <= 0:
        raise ValidationError("cost_per_unit", cost_per_unit, "must be positive")
    return units, cost_per_unit


def today(now: datetime | None = None) -> date:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(settings.timezone)).date()


def record_reading(
    store: RecordStore,
    units,
    cost_per_unit,
    reading_date: date | None = None,
    now: datetime | None = None,
    meter_reading: float | None = None,
    notes: str | None = None,
) -> ConsumptionRecord:
    """Add a reading to its day's record.

    The first reading of a day creates the record and fixes its tariff; later
    readings only add units and refresh the reading time.
    """
    record, _ = accumulate_reading(store, units, cost_per_unit, reading_date, now, meter_reading, notes)
    return record


def accumulate_reading(
    store: RecordStore,
    units,
    cost_per_unit,
    reading_date: date | None = None,
    now: datetime | None = None,
    meter_reading: float | None = None,
    notes: str | None = None,
) -> tuple[ConsumptionRecord, bool]:
    """Same as record_reading, also telling whether the day's record was created."""
    units, cost_per_unit = validate_reading(units, cost_per_unit)
    now = as_utc(now) if now else datetime.now(timezone.utc)
    reading_date = reading_date or today(now)

    existing = store.select_by_key(POWER_CONSUMPTION, "reading_date", reading_date)
    if existing is None:
        record = store.insert(POWER_CONSUMPTION, {
            "reading_date": reading_date,
            "units_consumed": units,
            "cost_per_unit": cost_per_unit,
            "meter_reading": meter_reading,
            "notes": notes,
            "reading_time": now,
        })
        logger.info("Consumption for %s started at %.2f units", reading_date, units)
        return record, True

    if cost_per_unit != existing.cost_per_unit:
        logger.debug(
            "Ignoring tariff %.4f for %s; day is fixed at %.4f",
            cost_per_unit, reading_date, existing.cost_per_unit,
        )

    patch = {
        "units_consumed": existing.units_consumed + units,
        "reading_time": now,
    }
    if meter_reading is not None:
        patch["meter_reading"] = meter_reading
    store.update(POWER_CONSUMPTION, "id", existing.id, patch)
    record = store.select_by_key(POWER_CONSUMPTION, "id", existing.id)
    logger.info("Consumption for %s accumulated to %.2f units", reading_date, record.units_consumed)
    return record, False


def get_recent_consumption(store: RecordStore, limit: int = 7) -> list[ConsumptionRecord]:
    return store.select_latest(POWER_CONSUMPTION, "reading_date", limit)


def _average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_trend(records: list[ConsumptionRecord]) -> tuple[float, TrendLabel]:
    """Average of the 3 newest days minus the average of the 3 before them."""
    ordered = sorted(records, key=lambda r: r.reading_date, reverse=True)
    recent = [r.units_consumed for r in ordered[:TREND_WINDOW]]
    previous = [r.units_consumed for r in ordered[TREND_WINDOW:2 * TREND_WINDOW]]
    delta = _average(recent) - _average(previous)

    if delta > 0:
        return delta, TrendLabel.INCREASING
    if delta < 0:
        return delta, TrendLabel.DECREASING
    return delta, TrendLabel.STABLE


def summarize(records: list[ConsumptionRecord]) -> ConsumptionSummary:
    total_units = sum(r.units_consumed for r in records)
    total_cost = sum(r.total_cost for r in records)
    trend, label = compute_trend(records)
    return ConsumptionSummary(
        total_units=total_units,
        total_cost=total_cost,
        average_daily=total_units / len(records) if records else 0.0,
        average_cost_per_unit=total_cost / total_units if total_units > 0 else 0.0,
        records=len(records),
        trend=trend,
        trend_label=label,
    )
