from datetime import datetime
from typing import Any

from pydantic import BaseModel

from powerswitch.schemas.power import ConsumptionSummary, MeterReadingRecord, PowerStatusRecord


class ConsumptionOverview(BaseModel):
    total: float = 0.0
    average: float = 0.0
    records: int = 0


class NotificationOverview(BaseModel):
    unread: int = 0


class SystemOverview(BaseModel):
    uptime: str
    last_update: datetime
    configured: bool = True


class DashboardSnapshot(BaseModel):
    as_of: datetime
    power_status: PowerStatusRecord | None = None
    consumption: ConsumptionOverview = ConsumptionOverview()
    consumption_summary: ConsumptionSummary = ConsumptionSummary()
    latest_reading: MeterReadingRecord | None = None
    notifications: NotificationOverview = NotificationOverview()
    system: SystemOverview


class DashboardResponse(DashboardSnapshot):
    poll_interval_seconds: int = 30


class LiveSnapshotResponse(BaseModel):
    version: int = 0
    snapshot: DashboardSnapshot | None = None


class DashboardAction(BaseModel):
    action: str
    data: dict[str, Any] = {}
