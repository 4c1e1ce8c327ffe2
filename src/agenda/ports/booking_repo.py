"""Booking repository interface."""

from typing import Protocol

from agenda.core.booking import Booking, BookingDraft


class BookingRepository(Protocol):
    """Interface for persisting bookings to any backend.

    Every method raises PersistenceError on failure.
    """

    async def fetch_all(self) -> list[Booking]:
        """Fetch every booking, ordered by start."""
        ...

    async def insert(self, draft: BookingDraft) -> Booking:
        """Insert a booking. Returns the canonical stored row."""
        ...

    async def update(self, booking_id: str, changes: dict) -> Booking:
        """Apply a partial set of field changes. Returns the canonical row."""
        ...

    async def delete(self, booking_id: str) -> None:
        """Delete a booking by id."""
        ...
