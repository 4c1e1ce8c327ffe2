"""Client registry - named customers whose details prefill new bookings."""

import logging

from .core.client import Client, sort_by_name
from .core.errors import InvalidClient, PersistenceError, PersistenceFailure
from .ports.client_repo import ClientRepository
from .ports.notifier import Notifier
from .reporting import Reporter

logger = logging.getLogger(__name__)


class ClientRegistry(Reporter):
    """
    In-memory view of the client registry, kept sorted by name.

    Adding waits for the repository before touching local state, so there
    is nothing to roll back.
    """

    def __init__(self, repository: ClientRepository, notifier: Notifier):
        super().__init__(notifier)
        self._repository = repository
        self._clients: list[Client] = []
        self._loading = False

    @property
    def clients(self) -> tuple[Client, ...]:
        return tuple(self._clients)

    @property
    def loading(self) -> bool:
        return self._loading

    def find(self, name: str) -> Client | None:
        """Case-insensitive lookup by name."""
        wanted = name.strip().casefold()
        for client in self._clients:
            if client.name.casefold() == wanted:
                return client
        return None

    async def refetch(self) -> bool:
        self._loading = True
        try:
            clients = await self._repository.fetch_all()
        except PersistenceError as e:
            await self.report("Could not load clients", PersistenceFailure(str(e)))
            return False
        finally:
            self._loading = False
        self._clients = sort_by_name(clients)
        logger.debug(f"Loaded {len(clients)} clients")
        return True

    async def add(self, client: Client) -> Client | None:
        """Register a client. Returns the stored record, or None after reporting why not."""
        title = "Could not save client"
        name = client.name.strip()
        if not name:
            await self.report(title, InvalidClient("Client name is required"))
            return None
        if self.find(name) is not None:
            await self.report(title, InvalidClient(f"{name} is already registered"))
            return None

        try:
            saved = await self._repository.insert(Client(
                name=name,
                phone=client.phone,
                address=client.address,
                price_per_hour=client.price_per_hour,
                notes=client.notes,
            ))
        except PersistenceError as e:
            await self.report(title, PersistenceFailure(str(e) or "Remote call failed"))
            return None

        self._clients = sort_by_name([*self._clients, saved])
        await self._announce("Client saved", saved.name)
        return saved
