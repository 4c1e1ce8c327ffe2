"""Composite notifier adapter - fans notices out to several sinks."""

from agenda.ports.notifier import Notice, Notifier


class CompositeNotifier:
    """
    Delivers every notice to each configured notifier in order.

    Implements Notifier protocol.
    """

    def __init__(self, notifiers: list[Notifier]):
        self.notifiers = list(notifiers)

    async def notify(self, notice: Notice) -> None:
        for notifier in self.notifiers:
            await notifier.notify(notice)
