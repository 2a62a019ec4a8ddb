"""Telegram bot commands: /start, /help, /status, /consumption.

These are another caller of the same read paths the HTTP API uses.
"""

import html
import logging

from powerswitch.errors import PowerSwitchError
from powerswitch.schemas.power import PowerState
from powerswitch.services import consumption, status_tracker
from powerswitch.services.telegram_client import TelegramNotifier
from powerswitch.store import RecordStore

logger = logging.getLogger(__name__)

COMMANDS_TEXT = (
    "/status - Get current power status\n"
    "/consumption - Get latest consumption data\n"
    "/help - Show this help message"
)

START_TEXT = (
    "🔌 Welcome to PowerSwitch Bot!\n\n"
    "This bot will notify you about power status changes and consumption updates.\n\n"
    "Available commands:\n" + COMMANDS_TEXT
)

HELP_TEXT = (
    "🔌 PowerSwitch Bot Help\n\n"
    "Available commands:\n"
    "/start - Start the bot\n" + COMMANDS_TEXT + "\n\n"
    "You will receive automatic notifications for:\n"
    "• Power outages 🔴\n"
    "• Power restoration 🟢\n"
    "• Daily summaries 📊\n"
    "• System alerts ⚠️"
)


def render_status(store: RecordStore | None) -> str:
    if store is None:
        return "❌ Database not configured"
    try:
        current = status_tracker.get_current_status(store)
    except PowerSwitchError as e:
        logger.error("Error fetching power status: %s", e)
        return "❌ Error fetching power status"
    if current is None:
        return "❌ No power status data available"

    emoji = "🟢" if current.status == PowerState.ON else "🔴"
    duration = f" ({current.duration_minutes} minutes)" if current.duration_minutes else ""
    return (
        f"{emoji} Power Status: {current.status.value}{duration}\n"
        f"📅 Last updated: {current.timestamp:%Y-%m-%d %H:%M} UTC"
    )


def render_consumption(store: RecordStore | None, limit: int = 5) -> str:
    if store is None:
        return "❌ Database not configured"
    try:
        records = consumption.get_recent_consumption(store, limit)
    except PowerSwitchError as e:
        logger.error("Error fetching consumption: %s", e)
        return "❌ Error fetching consumption data"
    if not records:
        return "❌ No consumption data available"

    lines = ["⚡ Latest Power Consumption:", ""]
    for i, rec in enumerate(records, start=1):
        lines.append(f"{i}. {rec.reading_date.isoformat()}: {rec.units_consumed:g} units ({rec.total_cost:.2f})")
    return "\n".join(lines)


def reply_for(store: RecordStore | None, text: str) -> str | None:
    """Reply text for a bot command, or None for anything that is not one."""
    if not text or not text.startswith("/"):
        return None
    # "/status@PowerSwitchBot extra" -> "status"
    command = text.split()[0][1:].split("@")[0].lower()
    if command == "start":
        return START_TEXT
    if command == "help":
        return HELP_TEXT
    if command == "status":
        return render_status(store)
    if command == "consumption":
        return render_consumption(store)
    return None


async def handle_update(store: RecordStore | None, notifier: TelegramNotifier, update: dict) -> bool:
    """Answer a Telegram webhook update. Returns whether a reply was sent."""
    message = update.get("message") or update.get("edited_message") or {}
    chat_id = (message.get("chat") or {}).get("id")
    reply = reply_for(store, message.get("text") or "")
    if reply is None or chat_id is None:
        return False
    return await notifier.send_message(html.escape(reply), chat_id=str(chat_id))
