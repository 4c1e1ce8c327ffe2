"""Task store - month-partitioned bookings with optimistic persistence.

The store is the only writer of the month bucket collection. Every mutation
applies locally first, then awaits the repository, then confirms, reverts
or refetches. Failures are reported through the notifier instead of being
raised, so callers keep running after a rejected mutation.
"""

import logging
from dataclasses import replace
from datetime import date, time
from enum import Enum
from typing import Any, Awaitable, Callable

from .core.booking import Booking, BookingDraft, new_temporary_id, sort_by_start
from .core.conflicts import DEFAULT_MIN_GAP_MINUTES, Conflict, detect_conflicts
from .core.errors import (
    InvalidDateRange,
    InvalidTimeWindow,
    PersistenceError,
    PersistenceFailure,
)
from .core.months import MonthTable
from .core.recurring import same_weekday_occurrence
from .core.timeutil import validate_time_range
from .ports.booking_repo import BookingRepository
from .ports.clock import Clock, utc_now
from .ports.notifier import Notifier
from .reporting import Reporter

logger = logging.getLogger(__name__)

Buckets = dict[str, list[Booking]]


class Recovery(Enum):
    """What to do with local state when the remote call fails."""

    REVERT = "revert"
    REFETCH = "refetch"


class TaskStore(Reporter):
    """
    Single source of truth for bookings, partitioned by month.

    Consumers read through the projection methods, which return tuples, and
    change state only through the async operations.
    """

    def __init__(
        self,
        repository: BookingRepository,
        notifier: Notifier,
        months: MonthTable,
        clock: Clock = utc_now,
    ):
        super().__init__(notifier)
        self._repository = repository
        self._months = months
        self._clock = clock
        self._buckets: Buckets = self._empty_buckets()
        self._loading = False

    # ============== Projections ==============

    @property
    def months(self) -> MonthTable:
        return self._months

    @property
    def loading(self) -> bool:
        return self._loading

    def bookings_for_month(self, key: str) -> tuple[Booking, ...]:
        """Bookings of one month, sorted by date and start time."""
        return tuple(sort_by_start(self._buckets.get(key, [])))

    def bookings_on(self, day: date) -> tuple[Booking, ...]:
        key = self._months.resolve_bucket(day)
        if key is None:
            return ()
        return tuple(b for b in self.bookings_for_month(key) if b.date == day)

    def all_bookings(self) -> tuple[Booking, ...]:
        return tuple(sort_by_start([b for bucket in self._buckets.values() for b in bucket]))

    def find(self, booking_id: str) -> Booking | None:
        for bucket in self._buckets.values():
            for booking in bucket:
                if booking.id == booking_id:
                    return booking
        return None

    def bucket_of(self, booking_id: str) -> str | None:
        for key, bucket in self._buckets.items():
            if any(b.id == booking_id for b in bucket):
                return key
        return None

    def conflicts_for(
        self,
        day: date,
        start: time,
        end: time,
        exclude_id: str | None = None,
        min_gap_minutes: int = DEFAULT_MIN_GAP_MINUTES,
    ) -> list[Conflict]:
        """Run the conflict detector against the stored bookings of a day."""
        return detect_conflicts(
            day, start, end, list(self.bookings_on(day)), exclude_id, min_gap_minutes
        )

    # ============== Operations ==============

    async def refetch(self) -> bool:
        """Reload every booking and rebuild all buckets from scratch."""
        self._loading = True
        try:
            bookings = await self._repository.fetch_all()
        except PersistenceError as e:
            await self.report("Could not load bookings", PersistenceFailure(str(e)))
            return False
        finally:
            self._loading = False

        buckets = self._empty_buckets()
        for booking in bookings:
            key = self._months.resolve_bucket(booking.date)
            if key is None:
                logger.debug(f"Skipping booking {booking.id} on {booking.date}: outside window")
                continue
            buckets[key].append(booking)
        self._buckets = buckets
        logger.debug(f"Loaded {len(bookings)} bookings")
        return True

    async def create(self, draft: BookingDraft) -> Booking | None:
        """Insert optimistically under a temporary id. Returns the stored booking."""
        title = "Could not create booking"
        key = await self._validate(draft, title)
        if key is None:
            return None

        temp = Booking.from_draft(new_temporary_id(), draft)

        def confirm(saved: Booking) -> None:
            self._remove(temp.id)
            self._put(saved, self._months.resolve_bucket(saved.date) or key)

        ok, saved = await self._optimistic(
            title,
            apply=lambda: self._buckets[key].append(temp),
            remote=lambda: self._repository.insert(draft),
            confirm=confirm,
            revert=lambda: self._remove(temp.id),
        )
        return saved if ok else None

    async def update(self, booking_id: str, draft: BookingDraft) -> bool:
        """Relocate and persist a booking. A failure forces a full refetch."""
        title = "Could not update booking"
        key = await self._validate(draft, title)
        if key is None:
            return False

        def confirm(saved: Booking) -> None:
            self._put(saved, self._months.resolve_bucket(saved.date) or key)

        ok, _ = await self._optimistic(
            title,
            apply=lambda: self._put(Booking.from_draft(booking_id, draft), key),
            remote=lambda: self._repository.update(booking_id, draft.to_fields()),
            confirm=confirm,
            recovery=Recovery.REFETCH,
        )
        return ok

    async def delete(self, booking_id: str) -> bool:
        ok, _ = await self._optimistic(
            "Could not delete booking",
            apply=lambda: self._remove(booking_id),
            remote=lambda: self._repository.delete(booking_id),
        )
        return ok

    async def toggle_completion(
        self,
        booking_id: str,
        currently_completed: bool,
        actor_role: str | None = None,
    ) -> bool:
        """Flip completion, recording who completed it."""
        completed = not currently_completed
        changes = {
            "completed": completed,
            "completed_by_role": actor_role if completed else None,
        }
        ok, _ = await self._optimistic(
            "Could not change status",
            apply=lambda: self._patch({booking_id}, changes),
            remote=lambda: self._repository.update(booking_id, changes),
        )
        return ok

    async def toggle_payment(self, booking_id: str, currently_paid: bool) -> bool:
        """Flip payment, stamping or clearing the payment time."""
        paid = not currently_paid
        changes = {"paid": paid, "paid_at": self._clock() if paid else None}
        ok, _ = await self._optimistic(
            "Could not change payment",
            apply=lambda: self._patch({booking_id}, changes),
            remote=lambda: self._repository.update(booking_id, changes),
        )
        return ok

    async def mark_paid_many(self, booking_ids: list[str]) -> bool:
        """Mark several bookings paid with one timestamp."""
        if not booking_ids:
            return True
        changes = {"paid": True, "paid_at": self._clock()}

        async def remote() -> None:
            for booking_id in booking_ids:
                await self._repository.update(booking_id, changes)

        # Some rows may already be saved when a later one fails
        ok, _ = await self._optimistic(
            "Could not mark payments",
            apply=lambda: self._patch(set(booking_ids), changes),
            remote=remote,
            recovery=Recovery.REFETCH,
        )
        if ok:
            await self._announce("Payments recorded", f"{len(booking_ids)} bookings marked as paid")
        return ok

    async def create_many(self, drafts: list[BookingDraft], label: str | None = None) -> list[Booking]:
        """Create drafts one by one; announce how many were stored."""
        created = []
        for draft in drafts:
            booking = await self.create(draft)
            if booking is not None:
                created.append(booking)

        if created:
            where = f" in {label}" if label else ""
            await self._announce("Bookings created", f"{len(created)} bookings created{where}")
        return created

    async def copy_month(self, source_key: str, target_key: str) -> list[Booking]:
        """
        Re-create a month's bookings in another month.

        Each booking lands on the same weekday occurrence (2nd Tuesday to
        2nd Tuesday). Copies start out neither completed nor paid.
        """
        for key in (source_key, target_key):
            if key not in self._months:
                await self.report("Could not copy month", InvalidDateRange(f"Unknown month {key}"))
                return []

        target = self._months[target_key]
        drafts = []
        for booking in self.bookings_for_month(source_key):
            day = same_weekday_occurrence(booking.date, target)
            if day is None:
                continue
            drafts.append(
                replace(
                    booking.to_draft(),
                    date=day,
                    completed=False,
                    completed_by_role=None,
                    paid=False,
                    paid_at=None,
                )
            )
        return await self.create_many(drafts, label=target.label)

    # ============== Internals ==============

    def _empty_buckets(self) -> Buckets:
        return {key: [] for key in self._months.keys}

    def _snapshot(self) -> Buckets:
        # Bookings are frozen, so copying the lists is enough
        return {key: list(bucket) for key, bucket in self._buckets.items()}

    def _remove(self, booking_id: str) -> None:
        for key, bucket in self._buckets.items():
            self._buckets[key] = [b for b in bucket if b.id != booking_id]

    def _put(self, booking: Booking, key: str) -> None:
        """Place booking in bucket key, replacing it in place when already there."""
        bucket = self._buckets[key]
        for idx, existing in enumerate(bucket):
            if existing.id == booking.id:
                bucket[idx] = booking
                return
        self._remove(booking.id)
        self._buckets[key].append(booking)

    def _patch(self, booking_ids: set[str], changes: dict) -> None:
        """Apply field changes to matching bookings in every bucket."""
        for key, bucket in self._buckets.items():
            self._buckets[key] = [
                b.with_changes(changes) if b.id in booking_ids else b for b in bucket
            ]

    async def _validate(self, draft: BookingDraft, title: str) -> str | None:
        """Bucket key for a draft, or None after reporting why it is invalid."""
        try:
            validate_time_range(draft.start_time, draft.end_time)
            key = self._months.resolve_bucket(draft.date)
            if key is None:
                raise InvalidDateRange(
                    f"{draft.date.isoformat()} is outside the supported months "
                    f"({self._months.first_day.isoformat()} to {self._months.last_day.isoformat()})"
                )
        except (InvalidTimeWindow, InvalidDateRange) as e:
            await self.report(title, e)
            return None
        return key

    async def _optimistic(
        self,
        title: str,
        *,
        apply: Callable[[], None],
        remote: Callable[[], Awaitable[Any]],
        confirm: Callable[[Any], None] | None = None,
        revert: Callable[[], None] | None = None,
        recovery: Recovery = Recovery.REVERT,
    ) -> tuple[bool, Any]:
        """
        Snapshot, apply locally, await the remote call, then settle.

        On failure REVERT restores the snapshot (or runs revert when given)
        and REFETCH reloads everything from the repository.
        """
        snapshot = self._snapshot()
        apply()
        try:
            result = await remote()
        except PersistenceError as e:
            message = str(e) or "Remote call failed"
            if recovery is Recovery.REFETCH:
                if not await self.refetch():
                    message += "; reload also failed, shown bookings may be out of date"
            elif revert is not None:
                revert()
            else:
                self._buckets = snapshot
            await self.report(title, PersistenceFailure(message))
            return False, None

        if confirm is not None:
            confirm(result)
        return True, result
