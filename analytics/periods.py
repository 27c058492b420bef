"""Calendar helpers shared by the time-bucketed aggregations.

All bucketing happens in local wall-clock time: ``now`` values and order
timestamps are converted with ``datetime.astimezone`` before comparison.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

MONTH_NAMES = tuple(calendar.month_name[1:])
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def local_now(now: datetime | None = None) -> datetime:
    """Return ``now`` (or the current time) as an aware local datetime."""

    return (now or datetime.now()).astimezone()


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move ``offset`` calendar months from (year, month); month is 1-12."""

    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_key(moment: datetime) -> tuple[int, int]:
    return moment.year, moment.month


def week_of_month_bounds(year: int, month: int, week: int) -> tuple[date, date]:
    """Day range of week ``week`` (1-based) within a month, clamped to month end."""

    last_day = last_day_of_month(year, month)
    start_day = min((week - 1) * 7 + 1, last_day)
    end_day = min(week * 7, last_day)
    return date(year, month, start_day), date(year, month, end_day)


def trailing_days(today: date, days: int = 7) -> list[date]:
    """The ``days`` calendar days ending with ``today``, oldest first."""

    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def sunday_first_weekday(moment: datetime) -> int:
    """Weekday index with Sunday=0 .. Saturday=6."""

    return (moment.weekday() + 1) % 7


def ordinal_suffix(day: int) -> str:
    if day in (1, 21, 31):
        return "st"
    if day in (2, 22):
        return "nd"
    if day in (3, 23):
        return "rd"
    return "th"


def short_day_label(day: date) -> str:
    """``"Oct 5"``"""

    return f"{day:%b} {day.day}"


def earning_day_label(day: date) -> str:
    """``"Mon 5th Oct"``"""

    return f"{day:%a} {day.day}{ordinal_suffix(day.day)} {day:%b}"


def month_label(year: int, month: int) -> str:
    """``"Oct 2026"``"""

    return f"{calendar.month_abbr[month]} {year}"


__all__ = [
    "DAY_NAMES",
    "MONTH_NAMES",
    "earning_day_label",
    "last_day_of_month",
    "local_now",
    "month_key",
    "month_label",
    "ordinal_suffix",
    "shift_month",
    "short_day_label",
    "sunday_first_weekday",
    "trailing_days",
    "week_of_month_bounds",
]
