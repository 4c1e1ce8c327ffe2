"""File-based repository adapters."""

import json
import logging
import uuid
from pathlib import Path

from agenda.core.booking import Booking, BookingDraft, changes_to_row, draft_to_row
from agenda.core.client import Client, sort_by_name
from agenda.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonRowFile:
    """A JSON list of rows on disk. Read and write failures raise PersistenceError."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}")
        if not isinstance(data, list):
            raise PersistenceError(f"Corrupt data file {self.path}: expected a list")
        return data

    def _write(self, rows: list[dict]) -> None:
        try:
            self.path.write_text(json.dumps(rows, indent=2))
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}")

    def _map(self, parse, row: dict):
        try:
            return parse(row)
        except (KeyError, ValueError, TypeError) as e:
            raise PersistenceError(f"Corrupt row in {self.path}: {e!r}")


class FileBookingRepository(JsonRowFile):
    """
    JSON-file booking storage.

    Implements BookingRepository protocol. Rows use the same columns as the
    remote `agendamentos` table, so a file can be imported there as-is.
    """

    async def fetch_all(self) -> list[Booking]:
        """Fetch every booking, ordered by start."""
        bookings = [self._map(Booking.from_row, r) for r in self._read()]
        return sorted(bookings, key=lambda b: (b.date, b.start_time))

    async def insert(self, draft: BookingDraft) -> Booking:
        rows = self._read()
        row = {"id": str(uuid.uuid4()), **draft_to_row(draft)}
        row.setdefault("pago", False)
        rows.append(row)
        self._write(rows)
        logger.debug(f"Inserted booking {row['id']}")
        return Booking.from_row(row)

    async def update(self, booking_id: str, changes: dict) -> Booking:
        rows = self._read()
        for row in rows:
            if row.get("id") == booking_id:
                row.update(changes_to_row(changes))
                self._write(rows)
                return self._map(Booking.from_row, row)
        raise PersistenceError(f"Booking {booking_id} not found")

    async def delete(self, booking_id: str) -> None:
        rows = self._read()
        remaining = [r for r in rows if r.get("id") != booking_id]
        if len(remaining) == len(rows):
            raise PersistenceError(f"Booking {booking_id} not found")
        self._write(remaining)


class FileClientRepository(JsonRowFile):
    """
    JSON-file client registry.

    Implements ClientRepository protocol with the remote `clients` columns.
    """

    async def fetch_all(self) -> list[Client]:
        """Fetch every client, ordered by name."""
        return sort_by_name([self._map(Client.from_row, r) for r in self._read()])

    async def insert(self, client: Client) -> Client:
        rows = self._read()
        row = {"id": str(uuid.uuid4()), **client.to_row()}
        rows.append(row)
        self._write(rows)
        logger.debug(f"Inserted client {row['id']}")
        return Client.from_row(row)
