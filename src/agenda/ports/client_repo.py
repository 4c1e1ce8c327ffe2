"""Client repository interface."""

from typing import Protocol

from agenda.core.client import Client


class ClientRepository(Protocol):
    """Interface for the client registry backend.

    Every method raises PersistenceError on failure.
    """

    async def fetch_all(self) -> list[Client]:
        """Fetch every client, ordered by name."""
        ...

    async def insert(self, client: Client) -> Client:
        """Insert a client. Returns the stored row with its id."""
        ...
