from sqlalchemy import Column, Date, DateTime, Enum, Float, Integer, String, Text
from sqlalchemy.sql import func

from powerswitch.database import Base
from powerswitch.schemas.power import PowerState


class PowerStatus(Base):
    """Append-only status history: one row per reported ON/OFF change."""
    __tablename__ = "power_status"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(
        Enum(PowerState, name="power_state", native_enum=False,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    duration_minutes = Column(Integer)  # only on ON rows that end an outage
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PowerConsumption(Base):
    """One row per calendar day; later readings of the same day accumulate."""
    __tablename__ = "power_consumption"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reading_date = Column(Date, nullable=False, unique=True, index=True)
    units_consumed = Column(Float, nullable=False, default=0.0)
    cost_per_unit = Column(Float, nullable=False)
    meter_reading = Column(Float)
    notes = Column(Text)
    reading_time = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class MeterReading(Base):
    """Instantaneous meter values pushed by the data source (voltage/current/power/units)."""
    __tablename__ = "meter_readings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String(200))
    voltage = Column(Float)
    current = Column(Float)
    power = Column(Float)  # watts
    units = Column(Float)  # kWh counter
    recorded_at = Column(DateTime(timezone=True), nullable=False, index=True)


class AppSetting(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
