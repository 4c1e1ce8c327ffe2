"""Notification sink interface."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from agenda.core.errors import SchedulingError


class Level(Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A user-facing message about the outcome of an operation."""

    level: Level
    title: str
    message: str
    error: SchedulingError | None = None


class Notifier(Protocol):
    """Interface for surfacing notices to the user (toast, chat, log)."""

    async def notify(self, notice: Notice) -> None:
        """Deliver a notice. Must not raise."""
        ...
