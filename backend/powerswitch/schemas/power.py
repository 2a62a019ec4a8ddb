from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from powerswitch.schemas.common import UtcDatetime
from powerswitch.schemas.notification import NotificationRecord


class PowerState(str, Enum):
    ON = "ON"
    OFF = "OFF"


class TrendLabel(str, Enum):
    INCREASING = "Increasing"
    DECREASING = "Decreasing"
    STABLE = "Stable"


class PowerStatusRecord(BaseModel):
    id: int
    status: PowerState
    timestamp: UtcDatetime
    duration_minutes: int | None = Field(default=None, ge=0)
    notes: str | None = None
    created_at: UtcDatetime | None = None


class ConsumptionRecord(BaseModel):
    id: int
    reading_date: date
    units_consumed: float = Field(ge=0)
    cost_per_unit: float = Field(gt=0)
    meter_reading: float | None = None
    notes: str | None = None
    reading_time: UtcDatetime | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None

    @computed_field
    @property
    def total_cost(self) -> float:
        return self.units_consumed * self.cost_per_unit


class MeterReadingRecord(BaseModel):
    id: int
    source: str | None = None
    voltage: float | None = None
    current: float | None = None
    power: float | None = None
    units: float | None = None
    recorded_at: UtcDatetime


class SettingRecord(BaseModel):
    id: int
    key: str
    value: str | None = None
    updated_at: UtcDatetime | None = None


class ConsumptionSummary(BaseModel):
    total_units: float = 0.0
    total_cost: float = 0.0
    average_daily: float = 0.0
    average_cost_per_unit: float = 0.0
    records: int = 0
    trend: float = 0.0
    trend_label: TrendLabel = TrendLabel.STABLE


# --- Request bodies ---

class PowerStatusRequest(BaseModel):
    status: PowerState
    notes: str | None = None


class ConsumptionRequest(BaseModel):
    reading_date: date | None = None  # None = today
    units_consumed: float
    cost_per_unit: float | None = None  # None = configured default tariff
    meter_reading: float | None = None
    notes: str | None = None


class MeterReadingRequest(BaseModel):
    voltage: float | None = None
    current: float | None = None
    power: float | None = None
    units: float | None = None
    recorded_at: UtcDatetime | None = None


class SettingsUpdate(BaseModel):
    # Kept as free text: an unparseable limit disables the threshold rule instead of failing
    power_limit: str | None = None
    data_source_id: str | None = None


class SettingsResponse(BaseModel):
    power_limit: str | None = None
    data_source_id: str | None = None
    telegram_configured: bool = False


# --- Responses ---

class PowerStatusUpdateResponse(BaseModel):
    record: PowerStatusRecord
    previous: PowerStatusRecord | None = None
    notification: NotificationRecord | None = None
    clock_anomaly: str | None = None


class MeterReadingResponse(BaseModel):
    reading: MeterReadingRecord
    notification: NotificationRecord | None = None


class SettingsUpdateResponse(SettingsResponse):
    notification: NotificationRecord | None = None
