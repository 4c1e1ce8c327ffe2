"""Agenda CLI - cleaning-service bookings."""

import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import date

import click

from .adapters.log_notifier import LogNotifier
from .clients import ClientRegistry
from .config import load_config
from .core.booking import Booking, BookingDraft
from .core.client import Client
from .core.conflicts import describe_conflicts
from .core.errors import InvalidDateRange, InvalidTimeWindow
from .core.recurring import WEEKDAY_NAMES, biweekly_drafts, fixed_weekday_drafts
from .core.summary import client_history, client_stats, summarize_month, summarize_payments
from .core.timeutil import compute_price, format_time, parse_time
from .ports.notifier import Level
from .reposition import DragState, Placement
from .store import TaskStore
from .workflows import build_client_registry, build_reposition, build_store


def _parse_date(ctx, param, value):
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


def _parse_time(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_time(value)
    except ValueError:
        raise click.BadParameter(f"expected HH:MM, got {value!r}")


def _execute(operation, *, as_json: bool = False, with_clients: bool = False):
    """Load the store, run an async operation, then echo notices.

    With with_clients the client registry is loaded too and passed as a
    third argument.

    Exits with status 1 when the operation reports failure.
    """
    config = load_config()
    log = LogNotifier()

    async def run():
        store = build_store(config, log=log)
        if not await store.refetch():
            return False
        if not with_clients:
            return await operation(store, config)
        registry = build_client_registry(config, log=log)
        if not await registry.refetch():
            return False
        return await operation(store, config, registry)

    result = asyncio.run(run())

    if not as_json:
        for notice in log.history:
            if notice.level is Level.ERROR:
                click.echo(f"Error: {notice.title}: {notice.message}", err=True)
            else:
                click.echo(notice.message)

    if result is False or result is None:
        sys.exit(1)
    return result


def _booking_dict(b: Booking) -> dict:
    return {
        "id": b.id,
        "date": b.date.isoformat(),
        "start": format_time(b.start_time),
        "end": format_time(b.end_time),
        "client": b.client,
        "phone": b.phone,
        "address": b.address,
        "price": b.price,
        "completed": b.completed,
        "completed_by": b.completed_by_role,
        "paid": b.paid,
    }


def _show_bookings(bookings, as_json: bool, empty_msg: str = "No bookings.") -> None:
    """Shared booking display logic."""
    if as_json:
        click.echo(json.dumps([_booking_dict(b) for b in bookings], indent=2))
        return

    if not bookings:
        click.echo(empty_msg)
        return

    current_date = None
    for b in bookings:
        if b.date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {b.date.strftime('%A, %d/%m')}")
            current_date = b.date
        status = "x" if b.completed else " "
        paid = " €" if b.paid else ""
        click.echo(f"  [{status}] {b.format_window()} {b.client} ({b.price}){paid}  #{b.id}")


def _echo_conflicts(store: TaskStore, config, day, start, end, exclude_id=None) -> None:
    conflicts = store.conflicts_for(day, start, end, exclude_id, config.min_gap_minutes)
    if conflicts:
        click.echo(describe_conflicts(conflicts, config.min_gap_minutes), err=True)


def _template(
    registry: ClientRegistry, client, start, end, phone, address, notes, rate, price, config
) -> BookingDraft:
    """Booking fields from the command line, gaps filled from the client registry."""
    known = registry.find(client)
    if known is not None:
        client = known.name
        phone = phone or known.phone
        address = address or known.address
        rate = rate or known.price_per_hour
    rate = rate or config.default_price_per_hour
    return BookingDraft(
        date=date.min,
        client=client,
        start_time=start,
        end_time=end,
        phone=phone,
        address=address,
        notes=notes,
        price_per_hour=rate,
        price=price or compute_price(start, end, rate) or "0.00",
    )


def _current_month(store: TaskStore, month: str | None) -> str:
    if month:
        if month not in store.months:
            raise click.BadParameter(f"{month} is not in {', '.join(store.months.keys)}")
        return month
    return store.months.resolve_bucket(date.today()) or store.months.keys[0]


@click.group()
@click.version_option(package_name="agenda")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Agenda - cleaning-service bookings."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )


@main.command()
def months():
    """List the supported months with booking counts."""

    async def op(store: TaskStore, config):
        for info in store.months:
            count = len(store.bookings_for_month(info.key))
            click.echo(f"{info.key}  {info.label:16} {count:3} bookings")
        return True

    _execute(op)


@main.command("list")
@click.argument("month", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(month: str | None, as_json: bool):
    """Show a month's bookings (default: current month)."""

    async def op(store: TaskStore, config):
        key = _current_month(store, month)
        _show_bookings(store.bookings_for_month(key), as_json, f"No bookings in {store.months[key].label}.")
        return True

    _execute(op, as_json=as_json)


@main.command()
@click.argument("day", callback=_parse_date)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def day(day: date, as_json: bool):
    """Show one day's bookings."""

    async def op(store: TaskStore, config):
        _show_bookings(store.bookings_on(day), as_json, "No bookings that day.")
        return True

    _execute(op, as_json=as_json)


@main.command()
@click.argument("day", callback=_parse_date)
@click.argument("start", callback=_parse_time)
@click.argument("end", callback=_parse_time)
@click.argument("client")
@click.option("--phone", default="")
@click.option("--address", default="")
@click.option("--notes", default="")
@click.option("--rate", default=None, help="Price per hour")
@click.option("--price", default=None, help="Override the computed total")
def add(day, start, end, client, phone, address, notes, rate, price):
    """Create a booking."""

    async def op(store: TaskStore, config, registry: ClientRegistry):
        template = _template(registry, client, start, end, phone, address, notes, rate, price, config)
        draft = replace(template, date=day)
        _echo_conflicts(store, config, day, start, end)
        booking = await store.create(draft)
        if booking:
            click.echo(f"Created #{booking.id} {booking.client} {booking.date} {booking.format_window()}")
        return booking

    _execute(op, with_clients=True)


@main.command()
@click.argument("booking_id")
@click.option("--date", "new_date", callback=_parse_date, default=None)
@click.option("--start", callback=_parse_time, default=None)
@click.option("--end", callback=_parse_time, default=None)
@click.option("--client", default=None)
@click.option("--phone", default=None)
@click.option("--address", default=None)
@click.option("--notes", default=None)
@click.option("--price", default=None)
def edit(booking_id, new_date, start, end, client, phone, address, notes, price):
    """Edit fields of a booking. Price is recomputed when times change."""

    async def op(store: TaskStore, config):
        booking = store.find(booking_id)
        if booking is None:
            click.echo(f"Error: no booking {booking_id}", err=True)
            return False
        changes = {
            k: v
            for k, v in {
                "date": new_date,
                "start_time": start,
                "end_time": end,
                "client": client,
                "phone": phone,
                "address": address,
                "notes": notes,
            }.items()
            if v is not None
        }
        draft = replace(booking.to_draft(), **changes)
        if price is not None:
            draft = replace(draft, price=price)
        elif start is not None or end is not None:
            recomputed = compute_price(draft.start_time, draft.end_time, draft.price_per_hour)
            if recomputed:
                draft = replace(draft, price=recomputed)
        _echo_conflicts(store, config, draft.date, draft.start_time, draft.end_time, booking_id)
        return await store.update(booking_id, draft)

    _execute(op)


@main.command()
@click.argument("booking_id")
def delete(booking_id: str):
    """Delete a booking."""

    async def op(store: TaskStore, config):
        return await store.delete(booking_id)

    _execute(op)


@main.command()
@click.argument("booking_id")
@click.option("--role", default=None, help="Who completed it (defaults to ACTOR_ROLE)")
def done(booking_id: str, role: str | None):
    """Toggle a booking's completion."""

    async def op(store: TaskStore, config):
        booking = store.find(booking_id)
        if booking is None:
            click.echo(f"Error: no booking {booking_id}", err=True)
            return False
        return await store.toggle_completion(booking_id, booking.completed, role or config.actor_role or None)

    _execute(op)


@main.command()
@click.argument("booking_ids", nargs=-1, required=True)
def paid(booking_ids: tuple[str, ...]):
    """Toggle payment of one booking, or mark several as paid."""

    async def op(store: TaskStore, config):
        if len(booking_ids) > 1:
            return await store.mark_paid_many(list(booking_ids))
        booking = store.find(booking_ids[0])
        if booking is None:
            click.echo(f"Error: no booking {booking_ids[0]}", err=True)
            return False
        return await store.toggle_payment(booking.id, booking.paid)

    _execute(op)


@main.command()
@click.argument("booking_id")
@click.argument("target", callback=_parse_date)
@click.option(
    "--position",
    type=click.Choice([p.value for p in Placement]),
    default=None,
    help="Where to place it when the day already has bookings",
)
@click.option("--confirm-undo", is_flag=True, help="Offer to undo right after moving")
def move(booking_id: str, target: date, position: str | None, confirm_undo: bool):
    """Move a booking to another day."""

    async def op(store: TaskStore, config):
        protocol = build_reposition(store, config)
        original = store.find(booking_id)
        if original is None:
            click.echo(f"Error: no booking {booking_id}", err=True)
            return False
        protocol.start_drag(booking_id)
        state = await protocol.drop(target)

        if state is DragState.AWAITING_PLACEMENT:
            click.echo(f"{target} already has {len(protocol.day_bookings)} booking(s):")
            for b in protocol.day_bookings:
                click.echo(f"  {b.format_window()} {b.client}")
            choice = position or click.prompt(
                "Place before or after them?",
                type=click.Choice(["above", "below", "cancel"]),
                default="below",
            )
            if choice == "cancel":
                protocol.cancel()
                click.echo("Cancelled.")
                return True
            if not await protocol.choose(Placement(choice)):
                return False

        if protocol.pending_undo is None:
            # Nothing moved: same day is fine, anything else was rejected
            return original.date == target

        moved = store.find(booking_id)
        click.echo(f"Moved to {moved.date} {moved.format_window()}")
        if confirm_undo and click.confirm("Undo?", default=False):
            return await protocol.undo()
        return True

    _execute(op)


@main.command()
@click.argument("month")
@click.argument("weekday", type=click.Choice([w.lower() for w in WEEKDAY_NAMES], case_sensitive=False))
@click.argument("start", callback=_parse_time)
@click.argument("end", callback=_parse_time)
@click.argument("client")
@click.option("--phone", default="")
@click.option("--address", default="")
@click.option("--notes", default="")
@click.option("--rate", default=None)
@click.option("--price", default=None)
def fixed(month, weekday, start, end, client, phone, address, notes, rate, price):
    """Book a client on every given weekday of a month."""

    async def op(store: TaskStore, config, registry: ClientRegistry):
        if month not in store.months:
            await store.report("Could not create bookings", InvalidDateRange(f"Unknown month {month}"))
            return False
        template = _template(registry, client, start, end, phone, address, notes, rate, price, config)
        try:
            drafts = fixed_weekday_drafts(
                template, [w.lower() for w in WEEKDAY_NAMES].index(weekday.lower()), store.months[month]
            )
        except InvalidTimeWindow as e:
            await store.report("Could not create bookings", e)
            return False
        created = await store.create_many(drafts, label=store.months[month].label)
        return bool(created)

    _execute(op, with_clients=True)


@main.command()
@click.argument("first", callback=_parse_date)
@click.argument("start", callback=_parse_time)
@click.argument("end", callback=_parse_time)
@click.argument("client")
@click.option("--times", "occurrences", default=2, show_default=True, help="Number of visits")
@click.option("--phone", default="")
@click.option("--address", default="")
@click.option("--notes", default="")
@click.option("--rate", default=None)
@click.option("--price", default=None)
def biweekly(first, start, end, client, occurrences, phone, address, notes, rate, price):
    """Book a client every two weeks starting on FIRST."""

    async def op(store: TaskStore, config, registry: ClientRegistry):
        template = _template(registry, client, start, end, phone, address, notes, rate, price, config)
        try:
            drafts = biweekly_drafts(template, first, store.months, occurrences)
        except (InvalidTimeWindow, InvalidDateRange) as e:
            await store.report("Could not create bookings", e)
            return False
        return bool(await store.create_many(drafts))

    _execute(op, with_clients=True)


@main.command()
@click.argument("source")
@click.argument("target")
@click.option("--confirm-undo", is_flag=True, help="Offer to undo right after copying")
def copy(source: str, target: str, confirm_undo: bool):
    """Copy a month's bookings onto the same weekdays of another month."""

    async def op(store: TaskStore, config):
        created = await store.copy_month(source, target)
        if not created:
            return False
        protocol = build_reposition(store, config)
        protocol.record_copy([b.id for b in created])
        if confirm_undo and click.confirm(f"Undo copy of {len(created)} bookings?", default=False):
            return await protocol.undo()
        return True

    _execute(op)


@main.command()
@click.argument("day", callback=_parse_date)
@click.argument("start", callback=_parse_time)
@click.argument("end", callback=_parse_time)
@click.option("--exclude", default=None, help="Booking id being edited")
def conflicts(day, start, end, exclude):
    """Check a time window against a day's bookings."""

    async def op(store: TaskStore, config):
        found = store.conflicts_for(day, start, end, exclude, config.min_gap_minutes)
        click.echo(describe_conflicts(found, config.min_gap_minutes) or "No conflicts.")
        return True

    _execute(op)


@main.command()
@click.argument("month", required=False)
def summary(month: str | None):
    """Totals for a month."""

    async def op(store: TaskStore, config):
        key = _current_month(store, month)
        info = store.months[key]
        s = summarize_month(list(store.bookings_for_month(key)), info.day_count)
        click.echo(f"## {info.label}")
        click.echo(f"Bookings:   {s.total} ({s.completed} done, {s.pending} pending)")
        click.echo(f"Hours:      {s.hours:.1f}h")
        click.echo(f"Total:      €{s.total_value:.2f} (€{s.completed_value:.2f} invoiced, €{s.pending_value:.2f} pending)")
        click.echo(f"Occupancy:  {s.occupancy_rate:.0f}%  Completion: {s.completion_rate:.0f}%")
        return True

    _execute(op)


@main.command()
@click.argument("month", required=False)
def payments(month: str | None):
    """Outstanding payments for completed bookings."""

    async def op(store: TaskStore, config):
        key = _current_month(store, month)
        s = summarize_payments(list(store.bookings_for_month(key)))
        click.echo(f"Invoiced €{s.invoiced:.2f}  Paid €{s.paid:.2f}  Pending €{s.pending:.2f}")
        for c in s.clients:
            click.echo(f"  {c.client:24} €{c.pending:.2f} pending of €{c.invoiced:.2f}")
        return True

    _execute(op)


def _client_dict(c: Client) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "phone": c.phone,
        "address": c.address,
        "price_per_hour": c.price_per_hour,
        "notes": c.notes,
    }


@main.group(invoke_without_command=True)
@click.pass_context
def clients(ctx):
    """Manage the client registry."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(clients_list)


@clients.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def clients_list(as_json: bool = False):
    """List registered clients by name."""

    async def op(store: TaskStore, config, registry: ClientRegistry):
        if as_json:
            click.echo(json.dumps([_client_dict(c) for c in registry.clients], indent=2))
        elif not registry.clients:
            click.echo("No clients registered.")
        else:
            for c in registry.clients:
                click.echo(f"  {c.name:24} €{c.price_per_hour}/h  {c.phone}")
        return True

    _execute(op, as_json=as_json, with_clients=True)


@clients.command("add")
@click.argument("name")
@click.option("--phone", default="")
@click.option("--address", default="")
@click.option("--rate", default=None, help="Price per hour (defaults to DEFAULT_PRICE_PER_HOUR)")
@click.option("--notes", default="")
def clients_add(name: str, phone: str, address: str, rate: str | None, notes: str):
    """Register a client; their details prefill new bookings."""

    async def op(store: TaskStore, config, registry: ClientRegistry):
        return await registry.add(
            Client(
                name=name,
                phone=phone,
                address=address,
                price_per_hour=rate or config.default_price_per_hour,
                notes=notes,
            )
        )

    _execute(op, with_clients=True)


@clients.command("show")
@click.argument("name")
@click.option("--limit", default=10, show_default=True, help="Most recent bookings to list")
def clients_show(name: str, limit: int):
    """Totals and booking history for one client."""

    async def op(store: TaskStore, config, registry: ClientRegistry):
        known = registry.find(name)
        client_name = known.name if known else name
        bookings = list(store.all_bookings())
        stats = client_stats(bookings).get(client_name)
        if known is None and stats is None:
            click.echo(f"Error: no client named {name}", err=True)
            return False

        click.echo(f"## {client_name}")
        if known is not None:
            click.echo(f"Phone:      {known.phone or '-'}")
            click.echo(f"Address:    {known.address or '-'}")
            click.echo(f"Rate:       €{known.price_per_hour}/h")
        if stats is None:
            click.echo("No bookings yet.")
            return True

        click.echo(f"Bookings:   {stats.total} ({stats.completed} done, {stats.pending} pending)")
        click.echo(f"Hours:      {stats.hours:.1f}h")
        click.echo(f"Revenue:    €{stats.revenue:.2f} (€{stats.pending_revenue:.2f} pending)")
        click.echo(f"Served:     {stats.first_service} to {stats.last_service}")
        click.echo()
        _show_bookings(client_history(bookings, client_name)[:limit], as_json=False)
        return True

    _execute(op, with_clients=True)


if __name__ == "__main__":
    main()
