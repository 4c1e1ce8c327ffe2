"""Ports - interfaces/protocols for external dependencies."""

from .booking_repo import BookingRepository
from .client_repo import ClientRepository
from .notifier import Level, Notice, Notifier
from .clock import Clock, utc_now

__all__ = [
    "BookingRepository",
    "ClientRepository",
    "Notifier",
    "Notice",
    "Level",
    "Clock",
    "utc_now",
]
