"""Hour-of-day, day-of-week and month-of-year distributions of confirmed orders."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, tzinfo
from typing import Iterable, Iterator

from pipelines.accessors import get_created_at, get_order_total, is_revenue_order
from pipelines.model import BaseOrder

from analytics.periods import DAY_NAMES, MONTH_NAMES, sunday_first_weekday
from analytics.schemas import PeakHourData, SeasonalData, WeeklyPatternData


def _timed_revenue(
    orders: Iterable[BaseOrder], tz: tzinfo | None = None
) -> Iterator[tuple[datetime, float]]:
    for order in orders:
        if not is_revenue_order(order):
            continue
        created = get_created_at(order, tz)
        if created is not None:
            yield created, get_order_total(order)


def _bucket(pairs: Iterable[tuple[int, float]]) -> dict[int, list[float]]:
    buckets: dict[int, list[float]] = defaultdict(list)
    for index, amount in pairs:
        buckets[index].append(amount)
    return buckets


def get_peak_hours_analysis(
    orders: Iterable[BaseOrder], limit: int = 24, *, tz: tzinfo | None = None
) -> list[PeakHourData]:
    """Busiest local hours first; hours with no orders are omitted."""

    buckets = _bucket((created.hour, amount) for created, amount in _timed_revenue(orders, tz))
    rows = [
        PeakHourData(
            hour=hour,
            order_count=len(amounts),
            total_revenue=sum(amounts),
            display_hour=f"{hour:02d}:00",
        )
        for hour, amounts in buckets.items()
    ]
    return sorted(rows, key=lambda row: row.order_count, reverse=True)[:limit]


def get_weekly_patterns(
    orders: Iterable[BaseOrder], *, tz: tzinfo | None = None
) -> list[WeeklyPatternData]:
    buckets = _bucket(
        (sunday_first_weekday(created), amount) for created, amount in _timed_revenue(orders, tz)
    )
    return [
        WeeklyPatternData(
            day=DAY_NAMES[index],
            day_index=index,
            order_count=len(buckets[index]),
            total_revenue=sum(buckets[index]),
        )
        for index in sorted(buckets)
    ]


def get_seasonal_trends(
    orders: Iterable[BaseOrder], *, tz: tzinfo | None = None
) -> list[SeasonalData]:
    """Month-of-year totals across all years; ``month_index`` is 0 for January."""

    buckets = _bucket((created.month - 1, amount) for created, amount in _timed_revenue(orders, tz))
    rows = []
    for index in sorted(buckets):
        amounts = buckets[index]
        rows.append(
            SeasonalData(
                month=MONTH_NAMES[index],
                month_index=index,
                order_count=len(amounts),
                total_revenue=sum(amounts),
                average_order_value=sum(amounts) / len(amounts),
            )
        )
    return rows


__all__ = [
    "get_peak_hours_analysis",
    "get_seasonal_trends",
    "get_weekly_patterns",
]
