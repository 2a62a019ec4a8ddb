from sqlalchemy import Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.sql import func

from powerswitch.database import Base


class SystemLog(Base):
    """Append-only audit trail: one row per state-changing action."""
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    meta = Column("metadata", JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
