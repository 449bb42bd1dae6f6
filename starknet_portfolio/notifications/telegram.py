"""Telegram delivery of sweep summaries and failure alerts."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096
REQUEST_TIMEOUT = 10


def fit_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut ``text`` to Telegram's message limit, marking the cut."""
    if len(text) <= limit:
        return text
    marker = "\n[truncated]"
    return text[: limit - len(marker)] + marker


class TelegramNotifier:
    """Two bots share one chat: alerts ring, sweep logs arrive muted."""

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def _post(self, bot_token: str, text: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram bot token or chat id missing, message dropped")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": fit_message(text),
            "disable_notification": silent,
        }
        connector = aiohttp.TCPConnector(ssl=self._ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                f"{API_BASE}/bot{bot_token}/sendMessage",
                json=payload,
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
            ) as response:
                if response.status != 200:
                    logger.error("Telegram sendMessage returned HTTP %s", response.status)
                    return False
        return True

    async def send_alert(self, message: str, subject: str = "") -> bool:
        text = f"{subject}\n\n{message}" if subject else message
        sent = await self._post(self.alert_bot_token, text, silent=False)
        if sent:
            logger.info("Telegram alert sent: %s", subject or "(no subject)")
        return sent

    async def send_log(self, message: str, silent: bool = True) -> bool:
        sent = await self._post(self.log_bot_token, message, silent=silent)
        if sent:
            logger.info("Telegram sweep log sent")
        return sent
