"""Shared notice delivery for the stateful services."""

import logging

from .core.errors import SchedulingError
from .ports.notifier import Level, Notice, Notifier

logger = logging.getLogger(__name__)


class Reporter:
    """Logs outcomes and forwards them to a notifier that is never allowed to raise."""

    def __init__(self, notifier: Notifier):
        self._notifier = notifier

    async def report(self, title: str, error: SchedulingError) -> None:
        """Log an error and surface it through the notifier."""
        logger.error(f"{title}: {error.message}")
        await self._deliver(Notice(Level.ERROR, title, error.message, error))

    async def _announce(self, title: str, message: str) -> None:
        logger.info(f"{title}: {message}")
        await self._deliver(Notice(Level.INFO, title, message))

    async def _deliver(self, notice: Notice) -> None:
        try:
            await self._notifier.notify(notice)
        except Exception as e:
            logger.warning(f"Notifier failed to deliver '{notice.title}': {e}")
