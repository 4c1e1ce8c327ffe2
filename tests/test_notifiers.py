"""Tests for the notifier adapters."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.error import TelegramError

from agenda.adapters.composite_notifier import CompositeNotifier
from agenda.adapters.log_notifier import LogNotifier
from agenda.adapters.telegram_notifier import TelegramNotifier, format_notice
from agenda.core.errors import PersistenceFailure
from agenda.ports.notifier import Level, Notice

ERROR = Notice(Level.ERROR, "Could not delete booking", "server down", PersistenceFailure("server down"))
INFO = Notice(Level.INFO, "Payments recorded", "2 bookings marked as paid")


def run(coro):
    return asyncio.run(coro)


class TestLogNotifier:
    def test_logs_and_keeps_history(self, caplog):
        notifier = LogNotifier(keep=1)
        with caplog.at_level(logging.INFO, logger="agenda.notices"):
            run(notifier.notify(INFO))
            run(notifier.notify(ERROR))
        assert notifier.history == [ERROR]
        assert "Payments recorded: 2 bookings marked as paid" in caplog.text
        assert caplog.records[-1].levelno == logging.ERROR


class TestFormatNotice:
    def test_error_marker(self):
        assert format_notice(ERROR).startswith("⚠️ **Could not delete booking**")

    def test_info_marker(self):
        assert format_notice(INFO) == "✅ **Payments recorded**\n\n2 bookings marked as paid"


class TestTelegramNotifier:
    def test_requires_token(self):
        with pytest.raises(ValueError, match="TELEGRAM_BOT_TOKEN"):
            TelegramNotifier("", 1)

    def test_sends_markdown(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        run(TelegramNotifier("", 42, bot=bot).notify(ERROR))

        kwargs = bot.send_message.call_args.kwargs
        assert kwargs["chat_id"] == 42
        assert kwargs["parse_mode"] == "MarkdownV2"
        assert "Could not delete booking" in kwargs["text"]

    @patch("agenda.adapters.telegram_notifier.telegramify_markdown.markdownify")
    def test_splits_long_messages(self, mock_markdownify):
        mock_markdownify.return_value = "x" * 9000
        bot = MagicMock()
        bot.send_message = AsyncMock()
        run(TelegramNotifier("", 42, bot=bot).notify(INFO))
        assert bot.send_message.await_count == 3

    def test_errors_only_skips_info(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        run(TelegramNotifier("", 42, bot=bot, errors_only=True).notify(INFO))
        bot.send_message.assert_not_called()

    def test_delivery_failure_is_logged(self, caplog):
        bot = MagicMock()
        bot.send_message = AsyncMock(side_effect=TelegramError("chat not found"))
        run(TelegramNotifier("", 42, bot=bot).notify(ERROR))
        assert "Telegram delivery failed" in caplog.text


class TestCompositeNotifier:
    def test_fans_out_in_order(self):
        first, second = LogNotifier(), LogNotifier()
        run(CompositeNotifier([first, second]).notify(INFO))
        assert first.history == [INFO]
        assert second.history == [INFO]
