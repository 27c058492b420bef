"""Product and service-line rankings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from jobs.config import SERVICE_CONFIGS, get_service_config
from pipelines.accessors import get_order_total, is_cancelled, is_revenue_order
from pipelines.model import DEFAULT_CURRENCY, BaseOrder, ServiceType

from analytics.schemas import TopService, VisitorCount

NANNY_PRODUCTS = {
    "day": "Daily Nanny",
    "week": "Weekly Nanny",
    "month": "Monthly Nanny",
}


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


@dataclass
class _ProductTally:
    currency: str
    orders: int = 0
    revenue: float = 0.0


def infer_product_name(order: BaseOrder, service: ServiceType | str | None = None) -> str:
    """Derive a display product from the fields each service line records.

    Home-care requests read as e.g. ``"Apartment - 2 Rooms"``.
    """

    service = ServiceType(service or order.service)
    if service == ServiceType.NANNIES:
        booking = getattr(order, "type", None) or "day"
        return NANNY_PRODUCTS.get(booking, "Nanny Service")
    if service == ServiceType.GEAR_REFRESH:
        price = order.price or order.total or 0
        return f"Car Seat Installation (AED {_format_amount(price)})"

    property_type = getattr(order, "property_type", None) or "Property"
    rooms = getattr(order, "no_of_rooms", None) or 0
    plural = "" if rooms == 1 else "s"
    return f"{property_type[:1].upper()}{property_type[1:]} - {rooms} Room{plural}"


def get_top_products(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]], limit: int = 5
) -> list[TopService]:
    grouped: dict[tuple[ServiceType, str], _ProductTally] = {}
    for service, orders in by_service.items():
        for order in orders:
            if not is_revenue_order(order):
                continue
            name = infer_product_name(order, service)
            tally = grouped.setdefault(
                (service, name), _ProductTally(currency=order.currency_code or DEFAULT_CURRENCY)
            )
            tally.orders += 1
            tally.revenue += get_order_total(order)

    products = [
        TopService(
            id=f"{service}:{name}",
            name=name,
            service=service,
            orders=tally.orders,
            revenue=tally.revenue,
            currency=tally.currency,
        )
        for (service, name), tally in grouped.items()
    ]
    return sorted(products, key=lambda product: product.revenue, reverse=True)[:limit]


def get_top_services(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]], limit: int = 5
) -> list[TopService]:
    """One row per service line with its confirmed order count and revenue."""

    rows = []
    for service, orders in by_service.items():
        config = get_service_config(service)
        confirmed = [order for order in orders if is_revenue_order(order)]
        currency = (confirmed[0].currency_code if confirmed else None) or DEFAULT_CURRENCY
        rows.append(
            TopService(
                id=config.key.value,
                name=config.name,
                service=config.key,
                orders=len(confirmed),
                revenue=sum(get_order_total(order) for order in confirmed),
                currency=currency,
            )
        )
    return sorted(rows, key=lambda row: row.revenue, reverse=True)[:limit]


def calculate_visitors_by_service(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]],
) -> list[VisitorCount]:
    """Non-cancelled order count per service line, whatever the payment state."""

    return [
        VisitorCount(
            service=config.short_name,
            orders=sum(1 for order in by_service.get(config.key, []) if not is_cancelled(order)),
            color=config.color,
        )
        for config in SERVICE_CONFIGS
    ]


__all__ = [
    "NANNY_PRODUCTS",
    "calculate_visitors_by_service",
    "get_top_products",
    "get_top_services",
    "infer_product_name",
]
