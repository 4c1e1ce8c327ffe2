"""Booking domain model and row mapping - no I/O dependencies."""

import json
import uuid
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, time, timezone

from .timeutil import format_time, to_minutes

DEFAULT_RATE = "7"
TEMP_ID_PREFIX = "tmp-"

STATUS_DONE = "concluido"
STATUS_SCHEDULED = "agendado"

# Fields that share a column and must be sent together in a partial update
_WINDOW_FIELDS = ("date", "start_time", "end_time")
_DESCRIPTION_FIELDS = ("address", "price_per_hour", "price", "notes")


@dataclass(frozen=True)
class BookingDraft:
    """Everything about a booking except its identity."""

    date: date
    client: str
    start_time: time
    end_time: time
    phone: str = ""
    address: str = ""
    notes: str = ""
    price_per_hour: str = DEFAULT_RATE
    price: str = "0.00"
    completed: bool = False
    completed_by_role: str | None = None
    paid: bool = False
    paid_at: datetime | None = None

    def duration_minutes(self) -> int:
        return to_minutes(self.end_time) - to_minutes(self.start_time)

    def duration_hours(self) -> float:
        return self.duration_minutes() / 60

    def format_window(self) -> str:
        return f"{format_time(self.start_time)}-{format_time(self.end_time)}"

    def to_fields(self) -> dict:
        """Draft fields as a change set for a full update."""
        return {f.name: getattr(self, f.name) for f in fields(BookingDraft)}


@dataclass(frozen=True)
class Booking(BookingDraft):
    """A scheduled appointment with a client."""

    id: str = ""

    @property
    def is_temporary(self) -> bool:
        return self.id.startswith(TEMP_ID_PREFIX)

    def to_draft(self) -> BookingDraft:
        return BookingDraft(**self.to_fields())

    @classmethod
    def from_draft(cls, booking_id: str, draft: BookingDraft) -> "Booking":
        return cls(id=booking_id, **draft.to_fields())

    def with_changes(self, changes: dict) -> "Booking":
        return replace(self, **changes)

    @classmethod
    def from_row(cls, row: dict) -> "Booking":
        """Create a Booking from a remote `agendamentos` row."""
        start = _parse_timestamp(row["data_inicio"])
        end = _parse_timestamp(row["data_fim"])

        extra: dict = {}
        if row.get("descricao"):
            try:
                extra = json.loads(row["descricao"])
            except (json.JSONDecodeError, TypeError):
                extra = {"notes": row["descricao"]}
            if not isinstance(extra, dict):
                extra = {"notes": str(extra)}

        completed = row.get("status") == STATUS_DONE
        paid_at = row.get("data_pagamento")
        return cls(
            id=str(row["id"]),
            date=start.date(),
            client=row.get("cliente_nome") or "",
            start_time=start.time().replace(second=0, microsecond=0),
            end_time=end.time().replace(second=0, microsecond=0),
            phone=row.get("cliente_contacto") or "",
            address=extra.get("address") or "",
            notes=extra.get("notes") or "",
            price_per_hour=str(extra.get("pricePerHour") or DEFAULT_RATE),
            price=str(extra.get("price") or "0"),
            completed=completed,
            completed_by_role=(row.get("concluido_por") or None) if completed else None,
            paid=bool(row.get("pago") or False),
            paid_at=_parse_timestamp(paid_at) if paid_at else None,
        )


def new_temporary_id() -> str:
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp and normalize it to UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _utc_timestamp(day: date, at: time) -> str:
    return datetime.combine(day, at, tzinfo=timezone.utc).isoformat()


def draft_to_row(draft: BookingDraft) -> dict:
    """Full row for inserting a draft."""
    return changes_to_row(draft.to_fields())


def changes_to_row(changes: dict) -> dict:
    """
    Map a set of Booking field changes to remote columns.

    The date/time group and the description group share columns, so each
    must be either absent or complete.
    """
    row: dict = {}

    window = [name for name in _WINDOW_FIELDS if name in changes]
    if window:
        if len(window) != len(_WINDOW_FIELDS):
            raise ValueError("date, start_time and end_time must change together")
        row["data_inicio"] = _utc_timestamp(changes["date"], changes["start_time"])
        row["data_fim"] = _utc_timestamp(changes["date"], changes["end_time"])

    described = [name for name in _DESCRIPTION_FIELDS if name in changes]
    if described:
        if len(described) != len(_DESCRIPTION_FIELDS):
            raise ValueError("address, price_per_hour, price and notes must change together")
        row["descricao"] = json.dumps(
            {
                "address": changes["address"],
                "pricePerHour": changes["price_per_hour"],
                "price": changes["price"],
                "notes": changes["notes"],
            }
        )

    if "client" in changes:
        row["cliente_nome"] = changes["client"]
    if "phone" in changes:
        row["cliente_contacto"] = changes["phone"] or None
    if "completed" in changes:
        row["status"] = STATUS_DONE if changes["completed"] else STATUS_SCHEDULED
    if "completed_by_role" in changes:
        row["concluido_por"] = changes["completed_by_role"]
    if "paid" in changes:
        row["pago"] = changes["paid"]
    if "paid_at" in changes:
        paid_at = changes["paid_at"]
        row["data_pagamento"] = paid_at.isoformat() if paid_at else None

    return row


def sort_by_start(bookings: list[Booking]) -> list[Booking]:
    """Sort bookings by date then start time."""
    return sorted(bookings, key=lambda b: (b.date, b.start_time))
