"""Same-day scheduling conflict detection - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, time
from enum import Enum

from .booking import Booking
from .timeutil import to_minutes

DEFAULT_MIN_GAP_MINUTES = 30


class ConflictKind(Enum):
    OVERLAP = "overlap"
    CLOSE = "close"  # gap shorter than the minimum


@dataclass(frozen=True)
class Conflict:
    """An existing booking that collides with a candidate window."""

    booking: Booking
    kind: ConflictKind

    def describe(self, min_gap_minutes: int = DEFAULT_MIN_GAP_MINUTES) -> str:
        reason = "overlap" if self.kind is ConflictKind.OVERLAP else f"gap < {min_gap_minutes}min"
        return f"{self.booking.format_window()} with {self.booking.client} ({reason})"


def detect_conflicts(
    target_date: date,
    start: time,
    end: time,
    existing: list[Booking],
    exclude_id: str | None = None,
    min_gap_minutes: int = DEFAULT_MIN_GAP_MINUTES,
) -> list[Conflict]:
    """
    Classify same-day bookings against a candidate window.

    Pure function - no I/O. Result order follows the input order.
    """
    new_start = to_minutes(start)
    new_end = to_minutes(end)

    conflicts = []
    for booking in existing:
        if booking.date != target_date or booking.id == exclude_id:
            continue

        existing_start = to_minutes(booking.start_time)
        existing_end = to_minutes(booking.end_time)

        if new_start < existing_end and new_end > existing_start:
            conflicts.append(Conflict(booking, ConflictKind.OVERLAP))
            continue

        gap_before = new_start - existing_end  # candidate after existing
        gap_after = existing_start - new_end  # candidate before existing
        if 0 <= gap_before < min_gap_minutes or 0 <= gap_after < min_gap_minutes:
            conflicts.append(Conflict(booking, ConflictKind.CLOSE))

    return conflicts


def describe_conflicts(
    conflicts: list[Conflict],
    min_gap_minutes: int = DEFAULT_MIN_GAP_MINUTES,
) -> str:
    """Human-readable summary, one line per conflict."""
    if not conflicts:
        return ""
    header = "1 conflict detected" if len(conflicts) == 1 else f"{len(conflicts)} conflicts detected"
    lines = [header]
    lines.extend(f"- {c.describe(min_gap_minutes)}" for c in conflicts)
    return "\n".join(lines)
