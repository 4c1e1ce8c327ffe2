"""Tests for the shared workflow layer."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from agenda.adapters.file_repo import FileBookingRepository, FileClientRepository
from agenda.adapters.log_notifier import LogNotifier
from agenda.adapters.telegram_notifier import TelegramNotifier
from agenda.config import DATA_DIR, Config
from agenda.workflows import (
    build_client_registry,
    build_reposition,
    build_store,
    get_client_repository,
    get_month_table,
    get_notifier,
    get_repository,
)


class TestGetRepository:
    def test_file_backend_uses_configured_path(self, tmp_path):
        config = Config(data_file=str(tmp_path / "b.json"))
        repo = get_repository(config)
        assert isinstance(repo, FileBookingRepository)
        assert repo.path == tmp_path / "b.json"

    def test_file_backend_default_path(self):
        assert Config().data_path() == DATA_DIR / "bookings.json"

    @patch("agenda.workflows.SupabaseAdapter")
    def test_supabase_backend(self, mock_cls):
        config = Config(backend="supabase", supabase_url="https://x.supabase.co", supabase_key="k")
        assert get_repository(config) is mock_cls.return_value
        mock_cls.assert_called_once_with(config)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            get_repository(Config(backend="sqlite"))


class TestGetClientRepository:
    def test_file_backend(self, tmp_path):
        repo = get_client_repository(Config(clients_file=str(tmp_path / "c.json")))
        assert isinstance(repo, FileClientRepository)
        assert repo.path == tmp_path / "c.json"

    def test_default_path(self):
        assert Config().clients_path() == DATA_DIR / "clients.json"

    @patch("agenda.workflows.SupabaseClientAdapter")
    def test_supabase_backend(self, mock_cls):
        config = Config(backend="supabase", supabase_url="https://x.supabase.co", supabase_key="k")
        assert get_client_repository(config) is mock_cls.return_value

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            get_client_repository(Config(backend="sqlite"))


class TestGetNotifier:
    def test_log_only_by_default(self):
        log = LogNotifier()
        notifier = get_notifier(Config(), log)
        assert notifier.notifiers == [log]

    @patch("agenda.adapters.telegram_notifier.Bot")
    def test_adds_telegram_for_errors(self, mock_bot):
        notifier = get_notifier(Config(telegram_bot_token="t", telegram_chat_id=42))
        telegram = notifier.notifiers[1]
        assert isinstance(telegram, TelegramNotifier)
        assert telegram.errors_only is True
        assert telegram.chat_id == 42

    def test_token_without_chat_is_ignored(self):
        assert len(get_notifier(Config(telegram_bot_token="t")).notifiers) == 1


class TestGetMonthTable:
    def test_fixed_year(self):
        table = get_month_table(Config(horizon_year=2025), today=date(2030, 1, 1))
        assert table.first_day == date(2024, 12, 1)
        assert table.last_day == date(2026, 1, 31)

    def test_defaults_to_today(self):
        table = get_month_table(Config(), today=date(2026, 7, 4))
        assert "2026-07" in table
        assert len(table) == 14


class TestBuild:
    def test_store_uses_clock_year(self, tmp_path):
        config = Config(data_file=str(tmp_path / "b.json"))
        store = build_store(config, clock=lambda: datetime(2027, 3, 1, tzinfo=timezone.utc))
        assert "2027-03" in store.months

    def test_reposition_from_config(self, tmp_path):
        config = Config(data_file=str(tmp_path / "b.json"), undo_window_seconds=30, placement_gap_minutes=15)
        store = build_store(config)
        protocol = build_reposition(store, config)
        assert protocol.undo_window == timedelta(seconds=30)
        assert protocol.placement_gap_minutes == 15

    def test_client_registry_shares_log(self, tmp_path):
        log = LogNotifier()
        registry = build_client_registry(Config(clients_file=str(tmp_path / "c.json")), log=log)
        assert isinstance(registry._repository, FileClientRepository)
        assert registry._notifier.notifiers == [log]
