"""Record store adapter.

The core only talks to the database through this narrow table-oriented
interface. Rows never leave the adapter: every read is validated into the
table's pydantic schema, and enum-typed columns are checked before writes so
an out-of-range status or notification type cannot slip in silently.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel
from sqlalchemy import Enum as SAEnum, func, inspect, select, update as sa_update, delete as sa_delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from powerswitch import database
from powerswitch.errors import StoreUnavailableError, ValidationError
from powerswitch.models.notification import Notification
from powerswitch.models.power import AppSetting, MeterReading, PowerConsumption, PowerStatus
from powerswitch.models.system_log import SystemLog
from powerswitch.schemas.notification import NotificationRecord
from powerswitch.schemas.power import (
    ConsumptionRecord,
    MeterReadingRecord,
    PowerStatusRecord,
    SettingRecord,
)
from powerswitch.schemas.system_log import SystemLogEntry
from powerswitch.services.change_feed import ChangeCallback, ChangeFeed, Subscription

logger = logging.getLogger(__name__)

POWER_STATUS = "power_status"
POWER_CONSUMPTION = "power_consumption"
NOTIFICATIONS = "notifications"
SYSTEM_LOGS = "system_logs"
METER_READINGS = "meter_readings"
APP_SETTINGS = "app_settings"

TABLES: dict[str, tuple[type, type[BaseModel]]] = {
    POWER_STATUS: (PowerStatus, PowerStatusRecord),
    POWER_CONSUMPTION: (PowerConsumption, ConsumptionRecord),
    NOTIFICATIONS: (Notification, NotificationRecord),
    SYSTEM_LOGS: (SystemLog, SystemLogEntry),
    METER_READINGS: (MeterReading, MeterReadingRecord),
    APP_SETTINGS: (AppSetting, SettingRecord),
}


class RecordStore:
    def __init__(self, session_factory: sessionmaker, feed: ChangeFeed | None = None):
        self._session_factory = session_factory
        self.feed = feed or ChangeFeed()

    # ------------------------------------------------------------------
    @contextmanager
    def _session(self):
        db: Session = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Record store operation failed: %s", e)
            raise StoreUnavailableError(f"Record store unavailable: {e.__class__.__name__}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _resolve(table: str) -> tuple[type, type[BaseModel]]:
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    @staticmethod
    def _column(model, name: str):
        try:
            return model.__table__.c[name]
        except KeyError:
            raise ValueError(f"Unknown column {model.__tablename__}.{name}") from None

    def _attr(self, model, name: str) -> str:
        return inspect(model).get_property_by_column(self._column(model, name)).key

    def _prepare(self, model, values: dict[str, Any]) -> dict[str, Any]:
        """Map column names to mapped attributes, rejecting out-of-enum values."""
        attrs = {}
        for name, value in values.items():
            col = self._column(model, name)
            if isinstance(col.type, SAEnum) and value is not None:
                raw = value.value if isinstance(value, Enum) else value
                if raw not in col.type.enums:
                    raise ValidationError(name, value, f"must be one of {col.type.enums}")
            attrs[self._attr(model, name)] = value
        return attrs

    def _where(self, model, filters: dict[str, Any]) -> list:
        clauses = []
        for name, value in filters.items():
            col = getattr(model, self._attr(model, name))
            clauses.append(col.is_(None) if value is None else col == value)
        return clauses

    def _to_record(self, model, schema: type[BaseModel], row) -> BaseModel:
        data = {c.name: getattr(row, self._attr(model, c.name)) for c in model.__table__.columns}
        return schema.model_validate(data)

    # ------------------------------------------------------------------
    def insert(self, table: str, values: dict[str, Any]) -> BaseModel:
        model, schema = self._resolve(table)
        attrs = self._prepare(model, values)
        with self._session() as db:
            row = model(**attrs)
            db.add(row)
            db.flush()
            db.refresh(row)
            record = self._to_record(model, schema, row)
        self.feed.publish(table, "INSERT", record)
        return record

    def select_latest(
        self,
        table: str,
        order_by: str,
        limit: int | None = None,
        since: datetime | None = None,
        **filters: Any,
    ) -> list[BaseModel]:
        """Rows ordered newest first on `order_by`; `since` bounds that same column."""
        model, schema = self._resolve(table)
        order_col = getattr(model, self._attr(model, order_by))
        stmt = select(model).where(*self._where(model, filters))
        if since is not None:
            stmt = stmt.where(order_col >= since)
        stmt = stmt.order_by(order_col.desc(), model.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as db:
            rows = db.execute(stmt).scalars().all()
            return [self._to_record(model, schema, r) for r in rows]

    def select_by_key(self, table: str, key: str, value: Any) -> BaseModel | None:
        model, schema = self._resolve(table)
        stmt = select(model).where(*self._where(model, {key: value})).limit(1)
        with self._session() as db:
            row = db.execute(stmt).scalars().first()
            return self._to_record(model, schema, row) if row is not None else None

    def update(self, table: str, key: str, value: Any, patch: dict[str, Any]) -> int:
        model, _ = self._resolve(table)
        attrs = self._prepare(model, patch)
        stmt = sa_update(model).where(*self._where(model, {key: value})).values(**attrs)
        with self._session() as db:
            count = db.execute(stmt).rowcount
        if count:
            self.feed.publish(table, "UPDATE", {"key": key, "value": value, "patch": patch})
        return count

    def delete(self, table: str, key: str, value: Any) -> int:
        model, _ = self._resolve(table)
        stmt = sa_delete(model).where(*self._where(model, {key: value}))
        with self._session() as db:
            count = db.execute(stmt).rowcount
        if count:
            self.feed.publish(table, "DELETE", {"key": key, "value": value})
        return count

    def count(self, table: str, **filters: Any) -> int:
        model, _ = self._resolve(table)
        stmt = select(func.count()).select_from(model).where(*self._where(model, filters))
        with self._session() as db:
            return db.execute(stmt).scalar_one()

    def subscribe(self, table: str, event_types: Iterable[str] | str, callback: ChangeCallback) -> Subscription:
        self._resolve(table)
        return self.feed.subscribe(table, event_types, callback)


_store: RecordStore | None = None


def get_store() -> RecordStore:
    """FastAPI dependency and shared accessor for the configured store."""
    global _store
    if database.engine is None:
        raise StoreUnavailableError("Database not configured")
    if _store is None:
        _store = RecordStore(database.SessionLocal)
    return _store


def get_optional_store() -> RecordStore | None:
    """Like get_store, but None when the store is not configured."""
    try:
        return get_store()
    except StoreUnavailableError:
        return None
