from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, JSON, String, Text
from sqlalchemy.sql import func

from powerswitch.database import Base
from powerswitch.schemas.notification import NotificationStatus, NotificationType


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(
        Enum(NotificationType, name="notification_type", native_enum=False,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    status = Column(
        Enum(NotificationStatus, name="notification_status", native_enum=False,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=NotificationStatus.UNREAD,
        index=True,
    )
    telegram_sent = Column(Boolean, default=False)
    telegram_message_id = Column(String(50))
    meta = Column("metadata", JSON)  # "metadata" is reserved on declarative classes
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
