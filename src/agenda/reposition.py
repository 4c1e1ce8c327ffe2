"""Drag-and-drop rescheduling and one-shot undo.

A gesture runs IDLE -> DRAGGING -> EVALUATING, then either commits straight
away (empty target day), waits for an insert-above/insert-below choice, or
returns to IDLE. Committing goes through TaskStore.update, which owns its
own rollback, and records a time-limited undo entry on success.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum

from .core.booking import Booking
from .core.errors import InvalidDateRange, InvalidTimeWindow, UnknownBooking
from .core.timeutil import from_minutes, to_minutes
from .ports.clock import Clock, utc_now
from .store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_UNDO_WINDOW = timedelta(seconds=15)
DEFAULT_PLACEMENT_GAP_MINUTES = 60


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    EVALUATING = "evaluating"
    AWAITING_PLACEMENT = "awaiting_placement"
    COMMITTING = "committing"


class Placement(Enum):
    ABOVE = "above"  # before the earliest booking of the day
    BELOW = "below"  # after the latest booking of the day


class RepositionError(Exception):
    """Raised when a gesture step is invoked in the wrong state."""

    pass


@dataclass(frozen=True)
class MoveUndo:
    """Where a single moved booking came from."""

    booking_id: str
    original_date: date
    original_start: time
    original_end: time
    new_date: date
    new_start: time
    new_end: time
    expires_at: datetime


@dataclass(frozen=True)
class CopyUndo:
    """Bookings created by one batch copy."""

    booking_ids: tuple[str, ...]
    expires_at: datetime


PendingUndo = MoveUndo | CopyUndo | None


def place_above(
    existing: list[Booking],
    duration: int,
    gap_minutes: int = DEFAULT_PLACEMENT_GAP_MINUTES,
) -> tuple[time, time]:
    """
    Window ending gap_minutes before the earliest existing start.

    Raises InvalidTimeWindow when the result would start before midnight.
    """
    earliest = min(to_minutes(b.start_time) for b in existing)
    end = earliest - gap_minutes
    start = end - duration
    return _window(start, end)


def place_below(
    existing: list[Booking],
    duration: int,
    gap_minutes: int = DEFAULT_PLACEMENT_GAP_MINUTES,
) -> tuple[time, time]:
    """
    Window starting gap_minutes after the latest existing end.

    Raises InvalidTimeWindow when the result would run past the day.
    """
    latest = max(to_minutes(b.end_time) for b in existing)
    start = latest + gap_minutes
    end = start + duration
    return _window(start, end)


def _window(start: int, end: int) -> tuple[time, time]:
    try:
        return from_minutes(start), from_minutes(end)
    except ValueError:
        raise InvalidTimeWindow("No room on that day for the booking at that position")


class RepositionProtocol:
    """State machine for one drag gesture at a time, plus the undo slot."""

    def __init__(
        self,
        store: TaskStore,
        clock: Clock = utc_now,
        undo_window: timedelta = DEFAULT_UNDO_WINDOW,
        placement_gap_minutes: int = DEFAULT_PLACEMENT_GAP_MINUTES,
    ):
        self.store = store
        self._clock = clock
        self.undo_window = undo_window
        self.placement_gap_minutes = placement_gap_minutes
        self.state = DragState.IDLE
        self._dragged: Booking | None = None
        self._target: date | None = None
        self._day_bookings: tuple[Booking, ...] = ()
        self._pending: PendingUndo = None

    # ============== Gesture ==============

    @property
    def dragged(self) -> Booking | None:
        return self._dragged

    @property
    def target_date(self) -> date | None:
        return self._target

    @property
    def day_bookings(self) -> tuple[Booking, ...]:
        """Other bookings on the target day while a placement is awaited."""
        return self._day_bookings

    def start_drag(self, booking_id: str) -> None:
        if self.state is not DragState.IDLE:
            raise RepositionError(f"Cannot start a drag while {self.state.value}")
        booking = self.store.find(booking_id)
        if booking is None:
            raise RepositionError(f"Unknown booking {booking_id}")
        self._dragged = booking
        self.state = DragState.DRAGGING

    async def drop(self, target_date: date) -> DragState:
        """
        Drop the dragged booking on a day.

        Returns the resulting state: IDLE when the move committed or was a
        no-op, AWAITING_PLACEMENT when the day already has bookings.
        """
        if self.state is not DragState.DRAGGING:
            raise RepositionError(f"Cannot drop while {self.state.value}")
        self.state = DragState.EVALUATING
        booking = self._dragged

        if booking.date == target_date:
            self._reset()
            return self.state

        if self.store.months.resolve_bucket(target_date) is None:
            await self.store.report(
                "Could not move booking",
                InvalidDateRange(f"{target_date.isoformat()} is outside the supported months"),
            )
            self._reset()
            return self.state

        self._target = target_date
        others = tuple(b for b in self.store.bookings_on(target_date) if b.id != booking.id)
        if not others:
            await self._commit(target_date, booking.start_time, booking.end_time)
            return self.state

        self._day_bookings = others
        self.state = DragState.AWAITING_PLACEMENT
        return self.state

    async def choose(self, placement: Placement) -> bool:
        """Commit the move before or after the target day's bookings."""
        if self.state is not DragState.AWAITING_PLACEMENT:
            raise RepositionError(f"No placement to choose while {self.state.value}")
        booking = self._dragged
        existing = list(self._day_bookings)
        duration = booking.duration_minutes()

        try:
            if placement is Placement.ABOVE:
                start, end = place_above(existing, duration, self.placement_gap_minutes)
            else:
                start, end = place_below(existing, duration, self.placement_gap_minutes)
        except InvalidTimeWindow as e:
            await self.store.report("Could not move booking", e)
            self._reset()
            return False

        return await self._commit(self._target, start, end)

    def cancel(self) -> None:
        """Abandon the gesture without mutating anything."""
        self._reset()

    async def _commit(self, target_date: date, start: time, end: time) -> bool:
        self.state = DragState.COMMITTING
        booking = self._dragged
        draft = replace(booking.to_draft(), date=target_date, start_time=start, end_time=end)

        ok = await self.store.update(booking.id, draft)
        if ok:
            self._pending = MoveUndo(
                booking_id=booking.id,
                original_date=booking.date,
                original_start=booking.start_time,
                original_end=booking.end_time,
                new_date=target_date,
                new_start=start,
                new_end=end,
                expires_at=self._clock() + self.undo_window,
            )
            logger.info(f"Moved {booking.client} from {booking.date} to {target_date}")
        self._reset()
        return ok

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self._dragged = None
        self._target = None
        self._day_bookings = ()

    # ============== Undo ==============

    def record_copy(self, booking_ids: list[str]) -> None:
        """Remember a batch copy so it can be undone."""
        if not booking_ids:
            return
        self._pending = CopyUndo(tuple(booking_ids), self._clock() + self.undo_window)

    @property
    def pending_undo(self) -> PendingUndo:
        """The active undo record, cleared lazily once expired."""
        if self._pending is not None and self._clock() >= self._pending.expires_at:
            logger.debug("Undo window expired")
            self._pending = None
        return self._pending

    def dismiss_undo(self) -> None:
        self._pending = None

    async def undo(self) -> bool:
        """
        Reverse the last move or copy, once.

        The record is cleared before any remote call, whatever the outcome.
        """
        pending = self.pending_undo
        if pending is None:
            return False
        self._pending = None

        if isinstance(pending, CopyUndo):
            results = [await self.store.delete(booking_id) for booking_id in pending.booking_ids]
            return all(results)

        booking = self.store.find(pending.booking_id)
        if booking is None:
            await self.store.report(
                "Could not undo move",
                UnknownBooking(f"Booking {pending.booking_id} no longer exists"),
            )
            return False
        draft = replace(
            booking.to_draft(),
            date=pending.original_date,
            start_time=pending.original_start,
            end_time=pending.original_end,
        )
        return await self.store.update(pending.booking_id, draft)
