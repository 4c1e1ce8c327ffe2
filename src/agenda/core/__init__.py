"""Functional core - pure scheduling logic with no I/O."""

from .booking import Booking, BookingDraft, sort_by_start
from .client import Client
from .conflicts import Conflict, ConflictKind, detect_conflicts, describe_conflicts
from .errors import (
    InvalidDateRange,
    InvalidClient,
    InvalidTimeWindow,
    PersistenceError,
    PersistenceFailure,
    SchedulingError,
    UnknownBooking,
)
from .months import MonthInfo, MonthTable
from .recurring import biweekly_drafts, fixed_weekday_drafts
from .summary import summarize_month, summarize_payments, client_stats, client_history
from .timeutil import compute_price, validate_time_range, parse_time, format_time

__all__ = [
    # Bookings
    "Booking",
    "BookingDraft",
    "sort_by_start",
    # Clients
    "Client",
    # Conflicts
    "Conflict",
    "ConflictKind",
    "detect_conflicts",
    "describe_conflicts",
    # Errors
    "SchedulingError",
    "InvalidDateRange",
    "InvalidTimeWindow",
    "PersistenceFailure",
    "PersistenceError",
    "UnknownBooking",
    "InvalidClient",
    # Months
    "MonthInfo",
    "MonthTable",
    # Recurrence
    "fixed_weekday_drafts",
    "biweekly_drafts",
    # Summaries
    "summarize_month",
    "summarize_payments",
    "client_stats",
    "client_history",
    # Time
    "compute_price",
    "validate_time_range",
    "parse_time",
    "format_time",
]
