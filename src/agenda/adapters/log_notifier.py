"""Logging notifier adapter."""

import logging

from agenda.ports.notifier import Level, Notice

notices_logger = logging.getLogger("agenda.notices")


class LogNotifier:
    """
    Notifier that writes notices to the log.

    Implements Notifier protocol. Also keeps the last notices in memory so a
    CLI can echo them after an operation.
    """

    def __init__(self, keep: int = 50):
        self.keep = keep
        self.history: list[Notice] = []

    async def notify(self, notice: Notice) -> None:
        level = logging.ERROR if notice.level is Level.ERROR else logging.INFO
        notices_logger.log(level, f"{notice.title}: {notice.message}")
        self.history = [*self.history, notice][-self.keep:]
