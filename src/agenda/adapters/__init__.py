"""Adapters - I/O implementations of ports."""

from .file_repo import FileBookingRepository, FileClientRepository
from .composite_notifier import CompositeNotifier
from .log_notifier import LogNotifier
from .supabase_rest import SupabaseAdapter, SupabaseClientAdapter
from .telegram_notifier import TelegramNotifier

__all__ = [
    "FileBookingRepository",
    "FileClientRepository",
    "SupabaseAdapter",
    "SupabaseClientAdapter",
    "LogNotifier",
    "CompositeNotifier",
    "TelegramNotifier",
]
