"""Telegram Bot API client.

One attempt per message, bounded by `telegram_timeout_seconds`. Any failure
is reported as `False` to the caller; retries are not attempted.
"""

import html
import logging
from dataclasses import dataclass

import httpx

from powerswitch.config import settings
from powerswitch.errors import DeliveryFailure

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    ok: bool
    message_id: str | None = None


class TelegramNotifier:
    def __init__(
        self,
        token: str | None = None,
        chat_id: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
    ):
        self.token = settings.telegram_bot_token if token is None else token
        self.chat_id = settings.telegram_chat_id if chat_id is None else chat_id
        self.api_url = (api_url or settings.telegram_api_url).rstrip("/")
        self.timeout = settings.telegram_timeout_seconds if timeout is None else timeout

    @property
    def configured(self) -> bool:
        return bool(self.token)

    async def _post(self, method: str, payload: dict) -> dict:
        url = f"{self.api_url}/bot{self.token}/{method}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            # InvalidURL is not an HTTPError; a stray control character in the token raises it
            raise DeliveryFailure("telegram", str(e) or e.__class__.__name__) from e

        if not isinstance(data, dict):
            raise DeliveryFailure("telegram", "unexpected response body")
        if not data.get("ok"):
            raise DeliveryFailure("telegram", data.get("description", "request rejected"))
        result = data.get("result")
        return result if isinstance(result, dict) else {}

    async def deliver(self, text: str, parse_mode: str = "HTML", chat_id: str | None = None) -> DeliveryResult:
        if not self.configured:
            logger.warning("Telegram bot token not configured; message not sent")
            return DeliveryResult(ok=False)

        target = chat_id or self.chat_id
        if not target:
            logger.warning("No chat ID configured for Telegram; message not sent")
            return DeliveryResult(ok=False)

        payload = {
            "chat_id": target,
            "text": text,
            "parse_mode": parse_mode,
            "link_preview_options": {"is_disabled": True},
        }
        try:
            result = await self._post("sendMessage", payload)
        except DeliveryFailure as e:
            logger.error("Error sending Telegram message: %s", e)
            return DeliveryResult(ok=False)

        message_id = result.get("message_id")
        return DeliveryResult(ok=True, message_id=str(message_id) if message_id is not None else None)

    async def send_message(self, text: str, parse_mode: str = "HTML", chat_id: str | None = None) -> bool:
        return (await self.deliver(text, parse_mode, chat_id)).ok


def format_notification(title: str, message: str) -> str:
    return f"<b>{html.escape(title)}</b>\n\n{html.escape(message)}"


_notifier: TelegramNotifier | None = None


def get_notifier() -> TelegramNotifier:
    global _notifier
    if _notifier is None:
        _notifier = TelegramNotifier()
    return _notifier
