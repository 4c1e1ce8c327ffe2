"""Clock interface."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current aware UTC time."""
    return datetime.now(timezone.utc)
