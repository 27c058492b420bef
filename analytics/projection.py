"""Bounded weighted-average revenue projection.

Not a forecasting model: the last three completed months are averaged with
weights 1, 2, 3 (oldest to newest, skipping months without revenue) and
each future month grows that average by 1% per step, clamped to
``[0.85 * avg, 1.15 * avg]``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, tzinfo
from typing import Iterable, Mapping, Sequence

from jobs.config import ASSUMED_AVERAGE_ORDER_VALUE
from pipelines.accessors import get_created_at, get_order_total, is_revenue_order
from pipelines.model import BaseOrder, ServiceType, empty_by_service

from analytics.periods import local_now, month_label, shift_month
from analytics.schemas import ProjectionPoint

logger = logging.getLogger(__name__)

HISTORY_WEIGHTS = (1, 2, 3)
MONTHLY_GROWTH = 0.01
LOWER_BOUND = 0.85
UPPER_BOUND = 1.15


def monthly_revenue(
    orders: Iterable[BaseOrder], tz: tzinfo | None = None
) -> dict[tuple[int, int], float]:
    totals: dict[tuple[int, int], float] = defaultdict(float)
    for order in orders:
        if not is_revenue_order(order):
            continue
        created = get_created_at(order, tz)
        if created is not None:
            totals[(created.year, created.month)] += get_order_total(order)
    return totals


def weighted_average(values: Sequence[float], weights: Sequence[int] = HISTORY_WEIGHTS) -> float:
    """Weighted mean over the non-zero values only; 0 when all are zero."""

    pairs = [(value, weight) for value, weight in zip(values, weights) if value > 0]
    total_weight = sum(weight for _, weight in pairs)
    if not total_weight:
        return 0.0
    return sum(value * weight for value, weight in pairs) / total_weight


def bounded_projection(average: float, step: int) -> float:
    projected = average * (1 + MONTHLY_GROWTH * step)
    return min(average * UPPER_BOUND, max(average * LOWER_BOUND, projected))


def calculate_revenue_projection(
    orders: Iterable[BaseOrder],
    months_ahead: int = 3,
    *,
    now: datetime | None = None,
) -> list[ProjectionPoint]:
    """Three historical points followed by ``months_ahead`` projected ones.

    Returns an empty list when none of the historical months has revenue.
    """

    now = local_now(now)
    totals = monthly_revenue(orders)
    history_months = [
        shift_month(now.year, now.month, -offset)
        for offset in range(len(HISTORY_WEIGHTS), 0, -1)
    ]
    history = [totals.get(month, 0.0) for month in history_months]

    if not any(value > 0 for value in history):
        logger.debug("No confirmed revenue in %s; skipping projection.", history_months)
        return []

    average = weighted_average(history)
    points = [
        ProjectionPoint(month=month_label(*month), projected=value, actual=value)
        for month, value in zip(history_months, history)
    ]
    for step in range(1, months_ahead + 1):
        year, month = shift_month(now.year, now.month, step - 1)
        points.append(
            ProjectionPoint(month=month_label(year, month), projected=bounded_projection(average, step))
        )
    return points


def calculate_service_growth_projection(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]],
    months_ahead: int = 6,
    *,
    now: datetime | None = None,
) -> dict[ServiceType, list[ProjectionPoint]]:
    """Revenue projection per service re-expressed as approximate order counts."""

    result: dict[ServiceType, list[ProjectionPoint]] = empty_by_service()
    for service, orders in by_service.items():
        result[service] = [
            point.model_copy(
                update={
                    "projected": point.projected / ASSUMED_AVERAGE_ORDER_VALUE,
                    "actual": (
                        None if point.actual is None else point.actual / ASSUMED_AVERAGE_ORDER_VALUE
                    ),
                }
            )
            for point in calculate_revenue_projection(orders, months_ahead, now=now)
        ]
    return result


__all__ = [
    "HISTORY_WEIGHTS",
    "LOWER_BOUND",
    "MONTHLY_GROWTH",
    "UPPER_BOUND",
    "bounded_projection",
    "calculate_revenue_projection",
    "calculate_service_growth_projection",
    "monthly_revenue",
    "weighted_average",
]
