"""Month, payment and client summaries - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from .booking import Booking
from .timeutil import parse_amount


@dataclass
class MonthSummary:
    """Aggregates for one month bucket."""

    total: int
    completed: int
    pending: int
    hours: float
    total_value: Decimal
    completed_value: Decimal
    occupancy_rate: float  # % of days with at least one booking
    completion_rate: float

    @property
    def pending_value(self) -> Decimal:
        return self.total_value - self.completed_value


def summarize_month(bookings: list[Booking], days_in_month: int) -> MonthSummary:
    """
    Summarize a month of bookings.

    Pure function - no I/O.
    """
    total = len(bookings)
    completed = [b for b in bookings if b.completed]
    total_value = sum((parse_amount(b.price) for b in bookings), Decimal("0"))
    completed_value = sum((parse_amount(b.price) for b in completed), Decimal("0"))
    hours = sum(b.duration_hours() for b in bookings)
    busy_days = len({b.date for b in bookings})

    return MonthSummary(
        total=total,
        completed=len(completed),
        pending=total - len(completed),
        hours=hours,
        total_value=total_value,
        completed_value=completed_value,
        occupancy_rate=(busy_days / days_in_month * 100) if days_in_month else 0.0,
        completion_rate=(len(completed) / total * 100) if total else 0.0,
    )


@dataclass
class ClientPayments:
    client: str
    bookings: list[Booking]
    invoiced: Decimal
    paid: Decimal

    @property
    def pending(self) -> Decimal:
        return self.invoiced - self.paid


@dataclass
class PaymentSummary:
    invoiced: Decimal
    paid: Decimal
    clients: list[ClientPayments] = field(default_factory=list)

    @property
    def pending(self) -> Decimal:
        return self.invoiced - self.paid


def summarize_payments(bookings: list[Booking]) -> PaymentSummary:
    """
    Invoiced vs. paid over completed bookings.

    Clients with nothing left to pay are left out of the breakdown; the rest
    are sorted by pending amount, largest first.
    """
    done = [b for b in bookings if b.completed]
    invoiced = sum((parse_amount(b.price) for b in done), Decimal("0"))
    paid = sum((parse_amount(b.price) for b in done if b.paid), Decimal("0"))

    grouped: dict[str, list[Booking]] = {}
    for b in done:
        grouped.setdefault(b.client, []).append(b)

    clients = []
    for name, services in grouped.items():
        services = sorted(services, key=lambda b: b.date)
        entry = ClientPayments(
            client=name,
            bookings=services,
            invoiced=sum((parse_amount(b.price) for b in services), Decimal("0")),
            paid=sum((parse_amount(b.price) for b in services if b.paid), Decimal("0")),
        )
        if entry.pending > 0 or any(not b.paid for b in services):
            clients.append(entry)
    clients.sort(key=lambda c: c.pending, reverse=True)

    return PaymentSummary(invoiced=invoiced, paid=paid, clients=clients)


@dataclass
class ClientStats:
    client: str
    total: int = 0
    completed: int = 0
    pending: int = 0
    hours: float = 0.0
    revenue: Decimal = Decimal("0")
    pending_revenue: Decimal = Decimal("0")
    first_service: date | None = None
    last_service: date | None = None


def client_stats(bookings: list[Booking]) -> dict[str, ClientStats]:
    """Per-client counts, hours and revenue. Hours count completed work only."""
    stats: dict[str, ClientStats] = {}
    for b in bookings:
        s = stats.setdefault(b.client, ClientStats(client=b.client))
        s.total += 1
        price = parse_amount(b.price)
        if b.completed:
            s.completed += 1
            s.hours += b.duration_hours()
            s.revenue += price
        else:
            s.pending += 1
            s.pending_revenue += price

        if s.first_service is None or b.date < s.first_service:
            s.first_service = b.date
        if s.last_service is None or b.date > s.last_service:
            s.last_service = b.date
    return stats


def client_history(bookings: list[Booking], client: str) -> list[Booking]:
    """A client's bookings, most recent first."""
    return sorted(
        (b for b in bookings if b.client == client),
        key=lambda b: (b.date, b.start_time),
        reverse=True,
    )
