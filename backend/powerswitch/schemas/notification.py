from enum import Enum
from typing import Any

from pydantic import BaseModel

from powerswitch.schemas.common import UtcDatetime


class NotificationType(str, Enum):
    POWER_OUTAGE = "power_outage"
    POWER_RESTORED = "power_restored"
    DAILY_SUMMARY = "daily_summary"
    WEEKLY_REPORT = "weekly_report"
    MAINTENANCE_ALERT = "maintenance_alert"
    SYSTEM = "system"


class NotificationStatus(str, Enum):
    READ = "read"
    UNREAD = "unread"


class NotificationDraft(BaseModel):
    """What the policy decided to emit, before it is persisted."""
    title: str
    message: str
    type: NotificationType
    metadata: dict[str, Any] | None = None


class NotificationRecord(BaseModel):
    id: int
    title: str
    message: str
    type: NotificationType
    status: NotificationStatus = NotificationStatus.UNREAD
    telegram_sent: bool | None = None
    telegram_message_id: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: UtcDatetime | None = None


class ManualTestRequest(BaseModel):
    message: str | None = None


class MaintenanceAlertRequest(BaseModel):
    message: str
