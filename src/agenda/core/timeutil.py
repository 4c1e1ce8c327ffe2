"""Pure time and price helpers - no I/O dependencies."""

from datetime import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import InvalidTimeWindow

MINUTES_PER_DAY = 24 * 60
_CENTS = Decimal("0.01")


def parse_time(value: str) -> time:
    """Parse a wall-clock "HH:MM" string."""
    hours, _, minutes = value.strip().partition(":")
    if not hours or not minutes:
        raise ValueError(f"Invalid time: {value!r}")
    return time(int(hours), int(minutes))


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def to_minutes(value: time | str) -> int:
    """Minutes since midnight."""
    if isinstance(value, str):
        value = parse_time(value)
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    """Inverse of to_minutes. Raises ValueError outside a single day."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)


def _coerce(value: time | str | None) -> time | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return parse_time(value)
    return value


def compute_price(
    start: time | str | None,
    end: time | str | None,
    rate_per_hour: str | Decimal | None,
) -> str | None:
    """
    Price for a time window at an hourly rate.

    Returns None when an input is missing or the duration is not positive,
    otherwise hours x rate rounded to cents as a fixed-point string.
    """
    start_t, end_t = _coerce(start), _coerce(end)
    if start_t is None or end_t is None or rate_per_hour in (None, ""):
        return None

    diff = to_minutes(end_t) - to_minutes(start_t)
    if diff <= 0:
        return None

    try:
        rate = Decimal(str(rate_per_hour))
    except InvalidOperation:
        return None

    hours = Decimal(diff) / Decimal(60)
    return str((hours * rate).quantize(_CENTS, rounding=ROUND_HALF_UP))


def validate_time_range(start: time | str | None, end: time | str | None) -> None:
    """Raise InvalidTimeWindow unless both times are set and end > start."""
    start_t, end_t = _coerce(start), _coerce(end)
    if start_t is None or end_t is None:
        raise InvalidTimeWindow("Start and end time are both required")
    if to_minutes(end_t) <= to_minutes(start_t):
        raise InvalidTimeWindow(
            f"End time {format_time(end_t)} must be after start time {format_time(start_t)}"
        )


def parse_amount(value: str | None) -> Decimal:
    """Lenient decimal parse for stored prices; bad input counts as zero."""
    if not value:
        return Decimal("0")
    try:
        return Decimal(value)
    except InvalidOperation:
        return Decimal("0")
