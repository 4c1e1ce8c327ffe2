"""Supabase adapter - PostgREST HTTP client for booking persistence."""

import asyncio
import logging

import requests

from agenda.config import Config, load_config
from agenda.core.booking import Booking, BookingDraft, changes_to_row, draft_to_row
from agenda.core.client import Client
from agenda.core.errors import PersistenceError

logger = logging.getLogger(__name__)

TIMEOUT = 15  # seconds


class SupabaseTable:
    """
    Blocking REST access to one PostgREST table.

    Every failure, including an unreadable body on a 2xx response, surfaces
    as PersistenceError.
    """

    def __init__(self, table: str, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        if not self.config.supabase_url or not self.config.supabase_key:
            raise PersistenceError("Missing Supabase credentials. Add them to config/agenda.conf")
        self._session = session or requests.Session()
        self._endpoint = f"{self.config.supabase_url}/rest/v1/{table}"

    def _headers(self) -> dict:
        return {
            "apikey": self.config.supabase_key,
            "Authorization": f"Bearer {self.config.supabase_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _request(self, method: str, params: dict | None = None, payload: dict | None = None) -> list[dict]:
        """Make a REST call; any failure becomes a PersistenceError."""
        try:
            resp = self._session.request(
                method,
                self._endpoint,
                params=params,
                json=payload,
                headers=self._headers(),
                timeout=TIMEOUT,
            )
        except requests.RequestException as e:
            raise PersistenceError(f"Network error: {e}")

        if resp.status_code >= 400:
            try:
                message = resp.json().get("message") or resp.text
            except (ValueError, AttributeError):
                message = resp.text
            logger.error(f"Supabase {method} failed ({resp.status_code}): {message}")
            raise PersistenceError(message or f"HTTP {resp.status_code}")

        if not resp.content:
            return []
        try:
            rows = resp.json()
        except ValueError as e:
            logger.error(f"Supabase {method} returned an unreadable body: {e}")
            raise PersistenceError(f"Unreadable response from server ({resp.status_code})")
        if not isinstance(rows, list):
            raise PersistenceError("Unexpected response from server: expected a list of rows")
        return rows

    def _single(self, rows: list[dict], row_id: str | None = None) -> dict:
        if not rows:
            raise PersistenceError(f"Row {row_id} not found" if row_id else "Empty response")
        return rows[0]

    def _map(self, parse, row: dict):
        """Convert a row with parse, treating malformed rows as a failed call."""
        try:
            return parse(row)
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Malformed row from {self._endpoint}: {row!r}")
            raise PersistenceError(f"Malformed row from server: {e!r}")


class SupabaseAdapter(SupabaseTable):
    """
    Supabase REST adapter for bookings.

    Implements BookingRepository protocol. Blocking requests calls run in a
    worker thread so the event loop stays responsive. No business logic -
    just I/O.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        config = config or load_config()
        super().__init__(config.supabase_table, config, session)

    async def fetch_all(self) -> list[Booking]:
        """Fetch every booking ordered by start time."""
        rows = await asyncio.to_thread(
            self._request, "GET", {"select": "*", "order": "data_inicio.asc"}
        )
        return [self._map(Booking.from_row, r) for r in rows]

    async def insert(self, draft: BookingDraft) -> Booking:
        rows = await asyncio.to_thread(self._request, "POST", None, draft_to_row(draft))
        return self._map(Booking.from_row, self._single(rows))

    async def update(self, booking_id: str, changes: dict) -> Booking:
        rows = await asyncio.to_thread(
            self._request, "PATCH", {"id": f"eq.{booking_id}"}, changes_to_row(changes)
        )
        return self._map(Booking.from_row, self._single(rows, booking_id))

    async def delete(self, booking_id: str) -> None:
        await asyncio.to_thread(self._request, "DELETE", {"id": f"eq.{booking_id}"})


class SupabaseClientAdapter(SupabaseTable):
    """
    Supabase REST adapter for the client registry.

    Implements ClientRepository protocol.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        config = config or load_config()
        super().__init__(config.supabase_clients_table, config, session)

    async def fetch_all(self) -> list[Client]:
        """Fetch every client ordered by name."""
        rows = await asyncio.to_thread(self._request, "GET", {"select": "*", "order": "nome.asc"})
        return [self._map(Client.from_row, r) for r in rows]

    async def insert(self, client: Client) -> Client:
        rows = await asyncio.to_thread(self._request, "POST", None, client.to_row())
        return self._map(Client.from_row, self._single(rows))
