"""Telegram notifier adapter - pushes notices to a chat."""

import logging

import telegramify_markdown
from telegram import Bot
from telegram.error import TelegramError

from agenda.ports.notifier import Level, Notice

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000


def format_notice(notice: Notice) -> str:
    """Render a notice as markdown."""
    marker = "⚠️" if notice.level is Level.ERROR else "✅"
    return f"{marker} **{notice.title}**\n\n{notice.message}"


class TelegramNotifier:
    """
    Telegram notifier.

    Implements Notifier protocol. Delivery failures are logged, never
    raised, so a flaky chat cannot break a booking operation.
    """

    def __init__(self, token: str, chat_id: int, bot: Bot | None = None, errors_only: bool = False):
        if not token and bot is None:
            raise ValueError(
                "TELEGRAM_BOT_TOKEN not configured. "
                "Get a token from @BotFather on Telegram and add it to agenda.conf"
            )
        self.bot = bot or Bot(token)
        self.chat_id = chat_id
        self.errors_only = errors_only

    async def notify(self, notice: Notice) -> None:
        if self.errors_only and notice.level is not Level.ERROR:
            return
        converted = telegramify_markdown.markdownify(format_notice(notice))
        chunks = [converted[i : i + MAX_MESSAGE_LENGTH] for i in range(0, len(converted), MAX_MESSAGE_LENGTH)]
        try:
            for chunk in chunks:
                await self.bot.send_message(chat_id=self.chat_id, text=chunk, parse_mode="MarkdownV2")
        except TelegramError as e:
            logger.warning(f"Telegram delivery failed: {e}")
