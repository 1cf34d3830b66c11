"""
Fire-and-forget chat notifications through the Telegram Bot HTTP API.

Called from the ingestion worker thread, so it uses a plain blocking HTTP
call rather than the bot's event loop. Failures are logged, never raised.
"""
import logging
from typing import Optional, Protocol

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


class Notifier(Protocol):
    def notify(self, chat_id: int | str, message: str) -> bool:
        ...


class TelegramNotifier:
    def __init__(self, bot_token: Optional[str] = None, timeout: float = 10.0):
        self.bot_token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self.timeout = timeout

    def notify(self, chat_id: int | str, message: str) -> bool:
        """
        Send an HTML message to a chat.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.bot_token or not chat_id:
            logger.warning("[NOTIFY] Skipped: bot token or chat id missing")
            return False

        try:
            response = requests.post(
                TELEGRAM_API_URL.format(token=self.bot_token),
                json={"chat_id": chat_id, "text": message, "parse_mode": "HTML"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"[NOTIFY] Telegram message to {chat_id} not sent: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"[NOTIFY] Telegram API error for {chat_id}: {response.text}")
            return False

        logger.info(f"[NOTIFY] Summary sent to chat_id={chat_id}")
        return True
