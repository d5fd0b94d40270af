import logging
from typing import Optional

from telegram import Bot
from telegram.error import TelegramError

from src.bot.formatters import split_message
from src.config import Config

logger = logging.getLogger(__name__)


class AdminNotifier:
    """Sends HTML alerts to the admin Telegram chat. A no-op when unconfigured."""

    def __init__(self, token: Optional[str] = None, chat_id: Optional[int] = None):
        self.token = token if token is not None else Config.TELEGRAM_BOT_TOKEN
        self.chat_id = chat_id if chat_id is not None else Config.ADMIN_CHAT_ID
        self._bot: Optional[Bot] = None

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self.token)
        return self._bot

    async def send(self, text: str) -> bool:
        """Send an alert. Returns False when disabled or when Telegram rejects it."""
        if not self.enabled:
            logger.debug("Admin alerts disabled, not sending")
            return False

        try:
            bot = self._get_bot()
            async with bot:
                for part in split_message(text):
                    await bot.send_message(
                        chat_id=self.chat_id,
                        text=part,
                        parse_mode="HTML",
                    )
        except TelegramError as e:
            logger.warning(f"Failed to send admin alert: {e}")
            return False
        return True
