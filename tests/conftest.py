"""Shared fakes for the store and reposition tests."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from agenda.core.booking import Booking, BookingDraft
from agenda.core.errors import PersistenceError
from agenda.core.months import MonthTable
from agenda.store import TaskStore


class InMemoryRepository:
    """BookingRepository fake with per-method failure injection."""

    def __init__(self, bookings: list[Booking] | None = None):
        self.rows: dict[str, Booking] = {b.id: b for b in bookings or []}
        self.fail_on: set[str] = set()
        self.calls: list[tuple] = []
        self._next_id = 1

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise PersistenceError(f"{method} rejected by server")

    async def fetch_all(self) -> list[Booking]:
        self.calls.append(("fetch_all",))
        self._check("fetch_all")
        return sorted(self.rows.values(), key=lambda b: (b.date, b.start_time))

    async def insert(self, draft: BookingDraft) -> Booking:
        self.calls.append(("insert", draft))
        self._check("insert")
        booking = Booking.from_draft(f"srv-{self._next_id}", draft)
        self._next_id += 1
        self.rows[booking.id] = booking
        return booking

    async def update(self, booking_id: str, changes: dict) -> Booking:
        self.calls.append(("update", booking_id, changes))
        self._check("update")
        if booking_id not in self.rows:
            raise PersistenceError(f"Booking {booking_id} not found")
        self.rows[booking_id] = self.rows[booking_id].with_changes(changes)
        return self.rows[booking_id]

    async def delete(self, booking_id: str) -> None:
        self.calls.append(("delete", booking_id))
        self._check("delete")
        self.rows.pop(booking_id, None)


class RecordingNotifier:
    def __init__(self):
        self.notices = []

    async def notify(self, notice) -> None:
        self.notices.append(notice)

    @property
    def errors(self):
        return [n for n in self.notices if n.error is not None]


class ManualClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def months():
    return MonthTable.for_year(2026)


@pytest.fixture
def make_booking():
    """Factory for creating bookings."""

    def _make(
        booking_id: str,
        day: date,
        start: str,
        end: str,
        client: str = "Maria Silva",
        **extra,
    ) -> Booking:
        sh, sm = map(int, start.split(":"))
        eh, em = map(int, end.split(":"))
        return Booking(
            id=booking_id,
            date=day,
            client=client,
            start_time=time(sh, sm),
            end_time=time(eh, em),
            **extra,
        )

    return _make


@pytest.fixture
def make_draft(make_booking):
    def _make(day: date, start: str, end: str, client: str = "Maria Silva", **extra) -> BookingDraft:
        return make_booking("", day, start, end, client, **extra).to_draft()

    return _make


@pytest.fixture
def clock():
    return ManualClock(datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store(repo, notifier, months, clock):
    return TaskStore(repo, notifier, months, clock=clock)
