"""Month partition table - static calendar metadata for the booking window."""

import calendar
from dataclasses import dataclass
from datetime import date

MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]

MONTH_COLORS = [
    "purple", "blue", "pink", "green", "yellow", "emerald",
    "cyan", "sky", "orange", "amber", "red", "rose",
]


@dataclass(frozen=True)
class MonthInfo:
    """Calendar metadata for one month bucket."""

    key: str
    year: int
    month_index: int  # zero-based, January = 0
    day_count: int
    label: str
    color: str

    @classmethod
    def of(cls, year: int, month_index: int) -> "MonthInfo":
        return cls(
            key=month_key(year, month_index),
            year=year,
            month_index=month_index,
            day_count=calendar.monthrange(year, month_index + 1)[1],
            label=f"{MONTH_NAMES[month_index]} {year}",
            color=MONTH_COLORS[month_index],
        )

    @property
    def first_day(self) -> date:
        return date(self.year, self.month_index + 1, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month_index + 1, self.day_count)

    def days(self) -> list[date]:
        """Every date in the month, in order."""
        return [date(self.year, self.month_index + 1, d) for d in range(1, self.day_count + 1)]

    def contains(self, target: date) -> bool:
        return target.year == self.year and target.month - 1 == self.month_index


def month_key(year: int, month_index: int) -> str:
    """Bucket key for a year and zero-based month index, e.g. "2026-01"."""
    return f"{year:04d}-{month_index + 1:02d}"


class MonthTable:
    """
    Ordered, immutable set of supported months.

    The window is the December before the horizon year, the twelve months
    of that year, and the January after it.
    """

    def __init__(self, months: list[MonthInfo]):
        self._months = tuple(months)
        self._by_key = {m.key: m for m in self._months}

    @classmethod
    def for_year(cls, year: int) -> "MonthTable":
        months = [MonthInfo.of(year - 1, 11)]
        months.extend(MonthInfo.of(year, i) for i in range(12))
        months.append(MonthInfo.of(year + 1, 0))
        return cls(months)

    @classmethod
    def around(cls, today: date) -> "MonthTable":
        """Table whose horizon year contains today."""
        return cls.for_year(today.year)

    def __iter__(self):
        return iter(self._months)

    def __len__(self) -> int:
        return len(self._months)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __getitem__(self, key: str) -> MonthInfo:
        return self._by_key[key]

    @property
    def keys(self) -> list[str]:
        return [m.key for m in self._months]

    @property
    def first_day(self) -> date:
        return self._months[0].first_day

    @property
    def last_day(self) -> date:
        return self._months[-1].last_day

    def resolve_bucket(self, target: date) -> str | None:
        """Key of the month containing target, or None outside the window."""
        for month in self._months:
            if month.contains(target):
                return month.key
        return None
