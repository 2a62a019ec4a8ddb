from fastapi import APIRouter, Depends

from powerswitch.schemas.power import SettingsResponse, SettingsUpdate, SettingsUpdateResponse
from powerswitch.services import app_settings, workflows
from powerswitch.services.telegram_client import TelegramNotifier, get_notifier
from powerswitch.store import RecordStore, get_store

router = APIRouter(prefix="/settings", tags=["settings"])


def _telegram_ready(notifier: TelegramNotifier) -> bool:
    return notifier.configured and bool(notifier.chat_id)


@router.get("/", response_model=SettingsResponse)
async def get_settings(
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    return SettingsResponse(**app_settings.get_all(store), telegram_configured=_telegram_ready(notifier))


@router.put("/", response_model=SettingsUpdateResponse)
async def update_settings(
    req: SettingsUpdate,
    store: RecordStore = Depends(get_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    """Save the power limit and/or data source; a new limit is checked against the latest reading."""
    values, notification = await workflows.update_settings(
        store, notifier,
        power_limit=req.power_limit,
        data_source_id=req.data_source_id,
    )
    return SettingsUpdateResponse(**values, telegram_configured=_telegram_ready(notifier), notification=notification)
