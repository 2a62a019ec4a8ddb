"""User-settable values stored in the `app_settings` table.

Values saved here override the defaults from `config.Settings`. They are kept
as opaque strings; only presence is checked.
"""

from powerswitch.config import settings
from powerswitch.store import APP_SETTINGS, RecordStore

POWER_LIMIT = "power_limit"
DATA_SOURCE_ID = "data_source_id"

KEYS = (POWER_LIMIT, DATA_SOURCE_ID)


def _defaults() -> dict[str, str | None]:
    return {
        POWER_LIMIT: str(settings.power_limit) if settings.power_limit is not None else None,
        DATA_SOURCE_ID: settings.data_source_id or None,
    }


def get_value(store: RecordStore, key: str) -> str | None:
    stored = store.select_by_key(APP_SETTINGS, "key", key)
    if stored is not None and stored.value not in (None, ""):
        return stored.value
    return _defaults().get(key)


def get_all(store: RecordStore) -> dict[str, str | None]:
    return {key: get_value(store, key) for key in KEYS}


def set_value(store: RecordStore, key: str, value: str | None):
    if key not in KEYS:
        raise ValueError(f"Unknown setting: {key}")
    value = value.strip() if isinstance(value, str) else value
    if store.select_by_key(APP_SETTINGS, "key", key) is None:
        store.insert(APP_SETTINGS, {"key": key, "value": value})
    else:
        store.update(APP_SETTINGS, "key", key, {"value": value})
