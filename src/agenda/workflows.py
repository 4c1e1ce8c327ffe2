"""Shared wiring between the CLI and any other front end.

Builds the repositories, notifier, store, client registry and reposition
protocol from a Config so every surface gets the same collaborators.
"""

from datetime import date, timedelta

from .adapters.composite_notifier import CompositeNotifier
from .adapters.file_repo import FileBookingRepository, FileClientRepository
from .adapters.log_notifier import LogNotifier
from .adapters.supabase_rest import SupabaseAdapter, SupabaseClientAdapter
from .adapters.telegram_notifier import TelegramNotifier
from .clients import ClientRegistry
from .config import Config
from .core.months import MonthTable
from .ports.booking_repo import BookingRepository
from .ports.client_repo import ClientRepository
from .ports.clock import Clock, utc_now
from .reposition import RepositionProtocol
from .store import TaskStore


def get_repository(config: Config) -> BookingRepository:
    """Resolve the persistence backend from config."""
    match config.backend:
        case "supabase":
            return SupabaseAdapter(config)
        case "file":
            return FileBookingRepository(config.data_path())
        case other:
            raise ValueError(f"Unknown backend '{other}'. Use 'file' or 'supabase'.")


def get_client_repository(config: Config) -> ClientRepository:
    """Resolve the client registry backend; it follows the booking backend."""
    match config.backend:
        case "supabase":
            return SupabaseClientAdapter(config)
        case "file":
            return FileClientRepository(config.clients_path())
        case other:
            raise ValueError(f"Unknown backend '{other}'. Use 'file' or 'supabase'.")


def get_notifier(config: Config, log: LogNotifier | None = None) -> CompositeNotifier:
    """Log notices always; also push errors to Telegram when configured."""
    notifiers = [log or LogNotifier()]
    if config.telegram_bot_token and config.telegram_chat_id:
        notifiers.append(
            TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id, errors_only=True)
        )
    return CompositeNotifier(notifiers)


def get_month_table(config: Config, today: date | None = None) -> MonthTable:
    if config.horizon_year:
        return MonthTable.for_year(config.horizon_year)
    return MonthTable.around(today or date.today())


def build_store(
    config: Config,
    repository: BookingRepository | None = None,
    log: LogNotifier | None = None,
    clock: Clock = utc_now,
) -> TaskStore:
    return TaskStore(
        repository or get_repository(config),
        get_notifier(config, log),
        get_month_table(config, clock().date()),
        clock=clock,
    )


def build_reposition(store: TaskStore, config: Config, clock: Clock = utc_now) -> RepositionProtocol:
    return RepositionProtocol(
        store,
        clock=clock,
        undo_window=timedelta(seconds=config.undo_window_seconds),
        placement_gap_minutes=config.placement_gap_minutes,
    )


def build_client_registry(
    config: Config,
    repository: ClientRepository | None = None,
    log: LogNotifier | None = None,
) -> ClientRegistry:
    return ClientRegistry(repository or get_client_repository(config), get_notifier(config, log))
