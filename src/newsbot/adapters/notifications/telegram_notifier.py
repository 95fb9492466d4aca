"""Telegram notification adapter."""

import html
import logging

import httpx

from newsbot.adapters.notifications.chunking import split_message
from newsbot.core import DeliveryError, Notifier

logger = logging.getLogger(__name__)

MAX_MESSAGE_LEN = 4096


class TelegramNotifier(Notifier):
    """Send digests through the Telegram Bot API."""

    markup = "html"

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 30.0) -> None:
        if not bot_token or not chat_id:
            raise ValueError("Telegram bot token and chat id are required")
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.base_url = "https://api.telegram.org"

    async def send(self, title: str, body: str) -> None:
        """Send a message, split on paragraph boundaries if it is too long."""
        text = body
        if title:
            text = f"<b>{html.escape(title, quote=False)}</b>\n\n{body}"

        chunks = split_message(text, MAX_MESSAGE_LEN)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for chunk in chunks:
                await self._send_raw(client, chunk)

        logger.info("Sent Telegram message in %d chunk(s)", len(chunks))

    async def _send_raw(self, client: httpx.AsyncClient, text: str) -> None:
        try:
            response = await client.post(
                f"{self.base_url}/bot{self.bot_token}/sendMessage",
                json={
                    "chat_id": self.chat_id,
                    "text": text,
                    "parse_mode": "HTML",
                    "disable_web_page_preview": True,
                },
            )
        except httpx.RequestError as e:
            raise DeliveryError(f"telegram send: {e}") from e

        if response.status_code != 200:
            try:
                description = response.json().get("description", "")
            except ValueError:
                description = response.text[:200]
            raise DeliveryError(f"telegram API {response.status_code}: {description}")
