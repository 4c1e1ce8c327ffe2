"""Configuration management for Agenda."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

AGENDA_HOME = Path(os.environ.get("AGENDA_HOME", Path.home() / "agenda"))
CONFIG_FILE = AGENDA_HOME / "config" / "agenda.conf"
DATA_DIR = AGENDA_HOME / "data"


@dataclass
class Config:
    """Agenda configuration."""

    backend: str = "file"  # "file" or "supabase"
    data_file: str = ""
    clients_file: str = ""
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_table: str = "agendamentos"
    supabase_clients_table: str = "clients"
    horizon_year: int = 0  # 0 = year of today
    min_gap_minutes: int = 30
    placement_gap_minutes: int = 60
    undo_window_seconds: int = 15
    default_price_per_hour: str = "7"
    actor_role: str = ""
    # Telegram notifications
    telegram_bot_token: str = ""
    telegram_chat_id: int = 0

    def data_path(self) -> Path:
        """Resolve the JSON data file for the file backend."""
        if self.data_file:
            return Path(self.data_file).expanduser()
        return DATA_DIR / "bookings.json"

    def clients_path(self) -> Path:
        """Resolve the JSON client registry file for the file backend."""
        if self.clients_file:
            return Path(self.clients_file).expanduser()
        return DATA_DIR / "clients.json"


def _unquote(value: str) -> str:
    """Strip surrounding quotes, or an inline comment from unquoted values."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key.upper()}={value!r}")
        return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from agenda.conf, then apply environment overrides."""
    config = Config()
    path = path or CONFIG_FILE

    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _unquote(value.strip())

            match key:
                case "backend":
                    config.backend = value.lower()
                case "data_file":
                    config.data_file = value
                case "clients_file":
                    config.clients_file = value
                case "supabase_url":
                    config.supabase_url = value.rstrip("/")
                case "supabase_key":
                    config.supabase_key = value
                case "supabase_table":
                    config.supabase_table = value
                case "supabase_clients_table":
                    config.supabase_clients_table = value
                case "horizon_year":
                    config.horizon_year = _int(key, value, config.horizon_year)
                case "min_gap_minutes":
                    config.min_gap_minutes = _int(key, value, config.min_gap_minutes)
                case "placement_gap_minutes":
                    config.placement_gap_minutes = _int(key, value, config.placement_gap_minutes)
                case "undo_window_seconds":
                    config.undo_window_seconds = _int(key, value, config.undo_window_seconds)
                case "default_price_per_hour":
                    config.default_price_per_hour = value
                case "actor_role":
                    config.actor_role = value
                case "telegram_bot_token":
                    config.telegram_bot_token = value
                case "telegram_chat_id":
                    config.telegram_chat_id = _int(key, value, config.telegram_chat_id)
                case _:
                    logger.debug(f"Unknown config key: {key}")

    if os.environ.get("SUPABASE_URL"):
        config.supabase_url = os.environ["SUPABASE_URL"].rstrip("/")
    if os.environ.get("SUPABASE_KEY"):
        config.supabase_key = os.environ["SUPABASE_KEY"]

    return config
