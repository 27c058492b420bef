"""Revenue, cost and profit aggregates under the per-service margin model.

Cost of an order is what the business pays out::

    cost = revenue * margin_rate(service)   # service provider
         + revenue * PLATFORM_FEE_RATE      # payment/platform fee
         + FIXED_COST_PER_ORDER

and profit is ``revenue - cost``. A nanny booking paid at 100 therefore
costs 65 + 5 + 5 = 75 and yields 25 profit.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Sequence

from jobs.config import FIXED_COST_PER_ORDER, PLATFORM_FEE_RATE, SERVICE_CONFIGS, margin_rate
from pipelines.accessors import (
    get_created_at,
    get_order_total,
    get_request_status,
    is_cancelled,
    is_confirmed,
    is_revenue_order,
)
from pipelines.model import BaseOrder, RequestStatus, ServiceType

from analytics.periods import local_now, month_key, shift_month
from analytics.schemas import CostBreakdown, DashboardStats, ServiceBreakdown


def percentage_change(current: float, previous: float) -> float:
    """Relative change in percent; 0 whenever there is no previous value."""

    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def safe_average(total: float, count: int) -> float:
    return total / count if count else 0.0


def cost_breakdown(revenue: float, service: ServiceType | str) -> CostBreakdown:
    return CostBreakdown(
        revenue=revenue,
        service_provider_cost=revenue * margin_rate(service),
        platform_fee=revenue * PLATFORM_FEE_RATE,
        fixed_cost=FIXED_COST_PER_ORDER,
    )


def calculate_order_cost(order: BaseOrder, service: ServiceType | str | None = None) -> float:
    return cost_breakdown(get_order_total(order), service or order.service).total_cost


def calculate_order_profit(order: BaseOrder, service: ServiceType | str | None = None) -> float:
    return cost_breakdown(get_order_total(order), service or order.service).profit


def confirmed_revenue(orders: Iterable[BaseOrder]) -> float:
    return sum(get_order_total(order) for order in orders if is_revenue_order(order))


def _month_buckets(
    orders: Iterable[BaseOrder], now: datetime
) -> tuple[list[BaseOrder], list[BaseOrder]]:
    current_key = month_key(now)
    previous_key = shift_month(now.year, now.month, -1)
    current: list[BaseOrder] = []
    previous: list[BaseOrder] = []
    for order in orders:
        if is_cancelled(order):
            continue
        created = get_created_at(order)
        if created is None:
            continue
        key = month_key(created)
        if key == current_key:
            current.append(order)
        elif key == previous_key:
            previous.append(order)
    return current, previous


def calculate_dashboard_stats(
    orders: Sequence[BaseOrder],
    service: ServiceType | str | None = None,
    *,
    now: datetime | None = None,
) -> DashboardStats:
    """Headline figures for the current calendar month versus the previous one.

    ``service`` selects the margin rate for every order; when omitted each
    order is costed with its own service line's rate.
    """

    now = local_now(now)
    current_orders, previous_orders = _month_buckets(orders, now)
    current_confirmed = [order for order in current_orders if is_confirmed(order)]
    previous_confirmed = [order for order in previous_orders if is_confirmed(order)]

    total_revenue = sum(get_order_total(order) for order in current_confirmed)
    previous_revenue = sum(get_order_total(order) for order in previous_confirmed)
    total_cost = sum(calculate_order_cost(order, service) for order in current_confirmed)
    total_profit = sum(calculate_order_profit(order, service) for order in current_confirmed)
    previous_profit = sum(calculate_order_profit(order, service) for order in previous_confirmed)

    current_aov = safe_average(total_revenue, len(current_confirmed))
    previous_aov = safe_average(previous_revenue, len(previous_confirmed))

    return DashboardStats(
        total_revenue=total_revenue,
        total_profit=total_profit,
        total_cost=total_cost,
        total_orders=len(current_orders),
        completed_orders=sum(
            1 for order in current_orders if get_request_status(order) == RequestStatus.COMPLETED
        ),
        pending_orders=sum(
            1 for order in current_orders if get_request_status(order) == RequestStatus.PENDING
        ),
        cancelled_orders=0,
        average_order_value=current_aov,
        revenue_change=percentage_change(total_revenue, previous_revenue),
        profit_change=(
            percentage_change(total_profit, previous_profit) if previous_confirmed else 0.0
        ),
        orders_change=percentage_change(len(current_orders), len(previous_orders)),
        average_order_value_change=percentage_change(current_aov, previous_aov),
    )


def calculate_service_breakdown(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]],
) -> list[ServiceBreakdown]:
    """Confirmed revenue per service line, in service declaration order."""

    return [
        ServiceBreakdown(
            service=config.name,
            value=confirmed_revenue(by_service.get(config.key, [])),
            color=config.color,
        )
        for config in SERVICE_CONFIGS
    ]


__all__ = [
    "calculate_dashboard_stats",
    "calculate_order_cost",
    "calculate_order_profit",
    "calculate_service_breakdown",
    "confirmed_revenue",
    "cost_breakdown",
    "percentage_change",
    "safe_average",
]
