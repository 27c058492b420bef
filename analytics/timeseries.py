"""Chart-ready revenue series over days and weeks."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Iterable

from pipelines.accessors import get_created_at, get_order_total, is_revenue_order
from pipelines.model import BaseOrder

from analytics.periods import (
    earning_day_label,
    local_now,
    shift_month,
    short_day_label,
    trailing_days,
    week_of_month_bounds,
)
from analytics.schemas import MonthlyEarningPoint, SalesChartPoint

WEEKS_PER_MONTH = 4


def daily_revenue(orders: Iterable[BaseOrder], tz: tzinfo | None = None) -> dict[date, float]:
    """Confirmed revenue keyed by local calendar date of ``created_at``."""

    totals: dict[date, float] = defaultdict(float)
    for order in orders:
        if not is_revenue_order(order):
            continue
        created = get_created_at(order, tz)
        if created is None:
            continue
        totals[created.date()] += get_order_total(order)
    return totals


def _resolve_today(today: date | datetime | None) -> date:
    if isinstance(today, datetime) or today is None:
        return local_now(today).date()
    return today


def _week_over_week(
    orders: Iterable[BaseOrder],
    today: date | datetime | None,
    label: Callable[[date], str],
) -> list[SalesChartPoint]:
    day = _resolve_today(today)
    totals = daily_revenue(orders)
    return [
        SalesChartPoint(
            date=label(current),
            current=totals.get(current, 0.0),
            previous=totals.get(current - timedelta(days=7), 0.0),
        )
        for current in trailing_days(day)
    ]


def generate_sales_chart_data(
    orders: Iterable[BaseOrder], *, today: date | datetime | None = None
) -> list[SalesChartPoint]:
    """Last 7 days (ending ``today``) against the same weekdays one week earlier."""

    return _week_over_week(orders, today, short_day_label)


def generate_earning_data(
    orders: Iterable[BaseOrder], *, today: date | datetime | None = None
) -> list[SalesChartPoint]:
    """Same series as :func:`generate_sales_chart_data` with ``"Mon 5th Oct"`` labels."""

    return _week_over_week(orders, today, earning_day_label)


def _week_revenue(totals: dict[date, float], year: int, month: int, week: int) -> float:
    start, end = week_of_month_bounds(year, month, week)
    return sum(value for day, value in totals.items() if start <= day <= end)


def generate_monthly_earning_data(
    orders: Iterable[BaseOrder], *, now: datetime | None = None
) -> list[MonthlyEarningPoint]:
    """Revenue for weeks 1-4 of this month and of the two months before it.

    Week N covers days (N-1)*7+1 through N*7, so days after the 28th are
    not part of any week.
    """

    now = local_now(now)
    totals = daily_revenue(orders)
    months = [shift_month(now.year, now.month, -offset) for offset in range(3)]

    points = []
    for week in range(1, WEEKS_PER_MONTH + 1):
        current, one_ago, two_ago = (
            _week_revenue(totals, year, month, week) for year, month in months
        )
        points.append(
            MonthlyEarningPoint(
                week=f"Week {week}",
                current_month=current,
                one_month_ago=one_ago,
                two_months_ago=two_ago,
            )
        )
    return points


__all__ = [
    "WEEKS_PER_MONTH",
    "daily_revenue",
    "generate_earning_data",
    "generate_monthly_earning_data",
    "generate_sales_chart_data",
]
