"""Single source of truth for reading canonical values off an order."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo

from pipelines.model import (
    CONFIRMED_PAYMENT_STATUSES,
    DEFAULT_PAYMENT_STATUS,
    DEFAULT_REQUEST_STATUS,
    BaseOrder,
    PaymentStatus,
    RequestStatus,
)

UNKNOWN_CUSTOMER = "Unknown Customer"


@dataclass(frozen=True)
class OrderLocation:
    city: str | None = None
    country: str | None = None
    lat: float | None = None
    lng: float | None = None


def get_order_total(order: BaseOrder) -> float:
    """``total`` when set and non-zero, else ``price``, else 0."""

    if order.total:
        return max(order.total, 0.0)
    if order.price:
        return max(order.price, 0.0)
    return 0.0


def get_payment_status(order: BaseOrder) -> PaymentStatus:
    return getattr(order, "payment_status", None) or DEFAULT_PAYMENT_STATUS


def get_request_status(order: BaseOrder) -> RequestStatus:
    return getattr(order, "request_status", None) or DEFAULT_REQUEST_STATUS


def is_confirmed(order: BaseOrder) -> bool:
    return get_payment_status(order) in CONFIRMED_PAYMENT_STATUSES


def is_cancelled(order: BaseOrder) -> bool:
    return get_request_status(order) == RequestStatus.CANCELLED


def is_revenue_order(order: BaseOrder) -> bool:
    """Confirmed payment on a request that was not cancelled."""

    return is_confirmed(order) and not is_cancelled(order)


def get_customer_name(order: BaseOrder) -> str:
    if order.full_name:
        return order.full_name
    if order.customer and order.customer.full_name:
        return order.customer.full_name
    return UNKNOWN_CUSTOMER


def get_customer_email(order: BaseOrder) -> str | None:
    if order.customer and order.customer.email:
        return order.customer.email
    return order.email or None


def get_customer_key(order: BaseOrder) -> str:
    """Identity used to group a customer's orders: email, else the order key."""

    if order.email:
        return order.email.lower()
    if order.customer and order.customer.email:
        return order.customer.email.lower()
    return order.document_id or order.order_id


def get_order_location(order: BaseOrder) -> OrderLocation:
    if order.address is not None:
        return OrderLocation(city=order.address.city, country=order.address.country)
    if order.location is not None:
        return OrderLocation(
            city=order.location.city,
            country=order.location.country,
            lat=order.location.lat,
            lng=order.location.lng,
        )
    return OrderLocation()


def parse_timestamp(value: str | None, tz: tzinfo | None = None) -> datetime | None:
    """Parse an ISO-8601 string into an aware datetime in ``tz`` (default: local).

    Naive values are read as local wall-clock time. Unparseable values give
    ``None``.
    """

    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return parsed.astimezone(tz)


def get_created_at(order: BaseOrder, tz: tzinfo | None = None) -> datetime | None:
    return parse_timestamp(order.created_at, tz)


__all__ = [
    "OrderLocation",
    "UNKNOWN_CUSTOMER",
    "get_created_at",
    "get_customer_email",
    "get_customer_key",
    "get_customer_name",
    "get_order_location",
    "get_order_total",
    "get_payment_status",
    "get_request_status",
    "is_cancelled",
    "is_confirmed",
    "is_revenue_order",
    "parse_timestamp",
]
