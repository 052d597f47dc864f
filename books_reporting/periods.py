"""
Report periods, calendar buckets and period presets.

Responsibility:
    Turns presets ("last 4 months", "this year to last month", ...) and
    manual date ranges into concrete inclusive periods, and splits a period
    into calendar-aligned month or quarter buckets.

Architecture position:
    Modules > Reporting -- pure functions, zero I/O.  "Today" is always a
    parameter; callers obtain it from an injected Clock.

Invariants enforced:
    - A Period's end is never before its start (InvalidPeriodError).
    - Bucket sequences are ordered, contiguous and gap-free.  Each bucket
      spans its full calendar month or quarter.
    - Presets resolve to month-aligned ranges (except the "to today"
      presets, whose end is today), so bucket totals partition the period
      total exactly.

Failure modes:
    - InvalidBucketTokenError for tokens that are not YYYY-MM or YYYY-Qn.
    - UnknownPeriodPresetError for unrecognised preset names.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from books_kernel.exceptions import (
    InvalidBucketTokenError,
    InvalidPeriodError,
    UnknownPeriodPresetError,
)
from books_kernel.models.transaction import parse_date

# "Since inception" lower bound for point-in-time balances
EPOCH = date(2000, 1, 1)

_MONTH_TOKEN = re.compile(r"^(\d{4})-(\d{2})$")
_QUARTER_TOKEN = re.compile(r"^(\d{4})-Q([1-4])$")


# =========================================================================
# Period
# =========================================================================


@dataclass(frozen=True)
class Period:
    """Inclusive calendar-date range [start, end]."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidPeriodError(self.start.isoformat(), self.end.isoformat())

    @classmethod
    def from_bounds(cls, start: date | str | None, end: date | str | None) -> Period | None:
        """
        Build a period from possibly-unset bounds.

        Returns None when either bound is missing or empty, so callers can
        short-circuit to "no data" instead of computing on empty values.
        """
        if start in (None, "") or end in (None, ""):
            return None
        return cls(parse_date(start), parse_date(end))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def label(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


def previous_period(period: Period) -> Period:
    """
    Fixed-duration window immediately before ``period``.

    [start - duration, start - 1 day] where duration = end - start.  This is
    not calendar-aligned: the window before 2024-02-01..2024-02-29 is
    2024-01-04..2024-01-31.  A single-day period yields the day before.
    """
    end = period.start - timedelta(days=1)
    return Period(min(period.start - period.duration, end), end)


# =========================================================================
# Calendar helpers
# =========================================================================


def month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def add_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def quarter_of(day: date) -> int:
    return (day.month - 1) // 3 + 1


def month_range(day: date) -> Period:
    return Period(date(day.year, day.month, 1), month_end(day.year, day.month))


def quarter_range(day: date) -> Period:
    first_month = (quarter_of(day) - 1) * 3 + 1
    return Period(date(day.year, first_month, 1), month_end(day.year, first_month + 2))


def year_range(day: date) -> Period:
    return Period(date(day.year, 1, 1), date(day.year, 12, 31))


# =========================================================================
# Buckets
# =========================================================================


class Granularity(str, Enum):
    """How a report's columns are split."""

    MONTH = "byMonth"
    QUARTER = "byQuarter"
    TOTAL = "totalOnly"

    @classmethod
    def parse(cls, value: str | Granularity) -> Granularity:
        if isinstance(value, cls):
            return value
        aliases = {"month": cls.MONTH, "quarter": cls.QUARTER, "total": cls.TOTAL}
        try:
            return aliases.get(value.lower()) or cls(value)
        except ValueError:
            raise ValueError(f"Unknown granularity: {value!r}") from None


@dataclass(frozen=True)
class Bucket:
    """A calendar month or quarter column, with its full calendar bounds."""

    token: str
    start: date
    end: date

    @property
    def label(self) -> str:
        return bucket_label(self.token)


def month_token(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def quarter_token(day: date) -> str:
    return f"{day.year:04d}-Q{quarter_of(day)}"


def months_in_range(start: date, end: date) -> tuple[str, ...]:
    """Tokens of every calendar month touched by [start, end], in order."""
    tokens: list[str] = []
    current = date(start.year, start.month, 1)
    while current <= end:
        tokens.append(month_token(current))
        current = add_months(current, 1)
    return tuple(tokens)


def quarters_in_range(start: date, end: date) -> tuple[str, ...]:
    """Tokens of every calendar quarter touched by [start, end], in order."""
    tokens: list[str] = []
    current = quarter_range(start).start
    while current <= end:
        tokens.append(quarter_token(current))
        current = add_months(current, 3)
    return tuple(tokens)


def month_bounds(token: str) -> tuple[date, date]:
    match = _MONTH_TOKEN.match(token)
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise InvalidBucketTokenError(token)
    year, month = int(match.group(1)), int(match.group(2))
    return date(year, month, 1), month_end(year, month)


def quarter_bounds(token: str) -> tuple[date, date]:
    match = _QUARTER_TOKEN.match(token)
    if not match:
        raise InvalidBucketTokenError(token)
    year, quarter = int(match.group(1)), int(match.group(2))
    first_month = (quarter - 1) * 3 + 1
    return date(year, first_month, 1), month_end(year, first_month + 2)


def bucket_bounds(token: str) -> tuple[date, date]:
    """Calendar bounds of a month or quarter token."""
    if _QUARTER_TOKEN.match(token):
        return quarter_bounds(token)
    return month_bounds(token)


def bucket_label(token: str) -> str:
    """Column heading: "Jan 2024" for months, "Q1 2024" for quarters."""
    match = _QUARTER_TOKEN.match(token)
    if match:
        return f"Q{match.group(2)} {match.group(1)}"
    start, _ = month_bounds(token)
    return f"{calendar.month_abbr[start.month]} {start.year}"


def buckets_for(period: Period, granularity: Granularity) -> tuple[Bucket, ...]:
    """Bucket columns for a period.  TOTAL has no bucket columns."""
    if granularity == Granularity.MONTH:
        tokens = months_in_range(period.start, period.end)
    elif granularity == Granularity.QUARTER:
        tokens = quarters_in_range(period.start, period.end)
    else:
        return ()
    return tuple(Bucket(token, *bucket_bounds(token)) for token in tokens)


# =========================================================================
# Presets
# =========================================================================


class PeriodPreset(str, Enum):
    """Named report periods, resolved relative to today."""

    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    LAST_4_MONTHS = "last4Months"
    LAST_12_MONTHS = "last12Months"
    THIS_QUARTER = "thisQuarter"
    LAST_QUARTER = "lastQuarter"
    THIS_YEAR_TO_LAST_MONTH = "thisYearToLastMonth"
    THIS_YEAR_TO_TODAY = "thisYearToToday"
    CURRENT_YEAR = "currentYear"
    PREVIOUS_YEAR = "previousYear"

    @classmethod
    def parse(cls, value: str | PeriodPreset) -> PeriodPreset:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownPeriodPresetError(str(value)) from None


DEFAULT_PRESET = PeriodPreset.THIS_YEAR_TO_LAST_MONTH


def resolve_preset(preset: PeriodPreset | str, today: date) -> Period | None:
    """
    Concrete [start, end] for a preset.

    Returns None for "this year to last month" in January, where the range
    would end before it starts.
    """
    preset = PeriodPreset.parse(preset)
    this_month = date(today.year, today.month, 1)
    last_month_end = this_month - timedelta(days=1)

    if preset == PeriodPreset.THIS_MONTH:
        return month_range(today)
    if preset == PeriodPreset.LAST_MONTH:
        return month_range(add_months(today, -1))
    if preset == PeriodPreset.LAST_4_MONTHS:
        return Period(add_months(today, -4), last_month_end)
    if preset == PeriodPreset.LAST_12_MONTHS:
        return Period(add_months(today, -12), month_end(today.year, today.month))
    if preset == PeriodPreset.THIS_QUARTER:
        return quarter_range(today)
    if preset == PeriodPreset.LAST_QUARTER:
        return quarter_range(add_months(today, -3))
    if preset == PeriodPreset.THIS_YEAR_TO_LAST_MONTH:
        if today.month == 1:
            return None
        return Period(date(today.year, 1, 1), last_month_end)
    if preset == PeriodPreset.THIS_YEAR_TO_TODAY:
        return Period(date(today.year, 1, 1), today)
    if preset == PeriodPreset.CURRENT_YEAR:
        return year_range(today)
    return year_range(date(today.year - 1, 1, 1))


def resolve_period(
    today: date,
    preset: PeriodPreset | str | None = None,
    start: date | str | None = None,
    end: date | str | None = None,
) -> Period | None:
    """
    Period for a report request.

    Explicit start/end bounds override the preset.  A half-specified manual
    range yields None ("no data").  Without bounds or preset the default
    preset applies.
    """
    if start not in (None, "") or end not in (None, ""):
        return Period.from_bounds(start, end)
    return resolve_preset(preset or DEFAULT_PRESET, today)
