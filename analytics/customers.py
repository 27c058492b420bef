"""Customer rankings and the recent-transactions feed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from jobs.config import get_service_config
from pipelines.accessors import (
    get_created_at,
    get_customer_email,
    get_customer_key,
    get_customer_name,
    get_order_total,
    get_payment_status,
    is_cancelled,
    is_revenue_order,
)
from pipelines.model import DEFAULT_CURRENCY, BaseOrder, ServiceType

from analytics.schemas import HighValueCustomer, Transaction


def _sort_moment(order: BaseOrder) -> float:
    created = get_created_at(order)
    return created.timestamp() if created is not None else float("-inf")


def get_recent_transactions(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]], limit: int = 10
) -> list[Transaction]:
    """Newest non-cancelled orders across all service lines.

    Orders with an unreadable ``created_at`` sort last; ties keep service
    then fetch order.
    """

    rows: list[tuple[float, Transaction]] = []
    for service, orders in by_service.items():
        config = get_service_config(service)
        for order in orders:
            if is_cancelled(order):
                continue
            rows.append(
                (
                    _sort_moment(order),
                    Transaction(
                        id=order.document_id or str(order.id),
                        order_id=order.order_id,
                        customer_name=get_customer_name(order),
                        service=config.key,
                        service_name=config.name,
                        amount=get_order_total(order),
                        currency=order.currency_code or DEFAULT_CURRENCY,
                        status=get_payment_status(order),
                        date=order.created_at,
                    ),
                )
            )
    rows.sort(key=lambda row: row[0], reverse=True)
    return [transaction for _, transaction in rows[:limit]]


@dataclass
class _CustomerTally:
    name: str
    email: str | None
    last_date: str | None
    total: float = 0.0
    count: int = 0
    last_seen: float = float("-inf")


def get_high_value_customers(
    orders: Iterable[BaseOrder], limit: int = 10
) -> list[HighValueCustomer]:
    """Customers ranked by confirmed spend, grouped by email (or order key)."""

    grouped: dict[str, _CustomerTally] = {}
    for order in orders:
        if not is_revenue_order(order):
            continue
        key = get_customer_key(order)
        if not key:
            continue
        tally = grouped.setdefault(
            key,
            _CustomerTally(
                name=get_customer_name(order),
                email=get_customer_email(order),
                last_date=order.created_at,
            ),
        )
        tally.total += get_order_total(order)
        tally.count += 1
        moment = _sort_moment(order)
        if moment > tally.last_seen:
            tally.last_seen = moment
            tally.last_date = order.created_at

    customers = [
        HighValueCustomer(
            id=key,
            name=tally.name,
            email=tally.email,
            total_spent=tally.total,
            order_count=tally.count,
            average_order_value=tally.total / tally.count,
            last_order_date=tally.last_date,
        )
        for key, tally in grouped.items()
    ]
    return sorted(customers, key=lambda customer: customer.total_spent, reverse=True)[:limit]


__all__ = ["get_high_value_customers", "get_recent_transactions"]
