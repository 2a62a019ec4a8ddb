import logging

from fastapi import APIRouter, Depends, Request

from powerswitch.services import bot_commands
from powerswitch.services.telegram_client import TelegramNotifier, get_notifier
from powerswitch.store import RecordStore, get_optional_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    store: RecordStore | None = Depends(get_optional_store),
    notifier: TelegramNotifier = Depends(get_notifier),
):
    """Receive bot updates; always 200 so Telegram does not redeliver."""
    try:
        update = await request.json()
    except ValueError:
        logger.warning("Ignoring malformed Telegram update")
        return {"ok": False, "replied": False}

    if not isinstance(update, dict):
        return {"ok": False, "replied": False}

    replied = await bot_commands.handle_update(store, notifier, update)
    return {"ok": True, "replied": replied}
