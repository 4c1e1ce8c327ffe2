"""Recurring booking generation - no I/O dependencies."""

from dataclasses import replace
from datetime import date, timedelta

from .booking import BookingDraft
from .errors import InvalidDateRange
from .months import MonthInfo, MonthTable
from .timeutil import validate_time_range

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def fixed_weekday_drafts(template: BookingDraft, weekday: int, month: MonthInfo) -> list[BookingDraft]:
    """
    One draft for every given weekday (Monday = 0) in the month.

    The template's date is ignored; every other field is copied.
    """
    validate_time_range(template.start_time, template.end_time)
    if not 0 <= weekday <= 6:
        raise ValueError(f"Weekday must be 0-6, got {weekday}")
    return [replace(template, date=d) for d in month.days() if d.weekday() == weekday]


def biweekly_drafts(
    template: BookingDraft,
    start_date: date,
    table: MonthTable,
    occurrences: int = 2,
) -> list[BookingDraft]:
    """Drafts on start_date and every 14 days after it, while inside the window."""
    validate_time_range(template.start_time, template.end_time)
    if table.resolve_bucket(start_date) is None:
        raise InvalidDateRange(f"{start_date.isoformat()} is outside the supported months")

    drafts = []
    current = start_date
    for _ in range(occurrences):
        if current > table.last_day:
            break
        drafts.append(replace(template, date=current))
        current += timedelta(days=14)
    return drafts


def same_weekday_occurrence(source: date, target_month: MonthInfo) -> date | None:
    """
    The date in target_month with the same weekday and occurrence number.

    The 2nd Tuesday maps to the 2nd Tuesday; a 5th occurrence that does not
    exist in the target month yields None.
    """
    occurrence = (source.day - 1) // 7
    matching = [d for d in target_month.days() if d.weekday() == source.weekday()]
    if occurrence >= len(matching):
        return None
    return matching[occurrence]
