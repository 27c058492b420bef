from __future__ import annotations

import itertools
from datetime import datetime
from typing import Any

import pytest

from pipelines.model import ORDER_MODELS, PaymentStatus, RequestStatus, ServiceType

# Sunday 18 October 2026, local time.
NOW = datetime(2026, 10, 18, 12, 0)


def stamp(year: int, month: int, day: int, hour: int = 12) -> str:
    """Naive ISO timestamp; read back as local wall-clock time."""

    return datetime(year, month, day, hour, 0).isoformat()


class FakeTransport:
    """In-memory stand-in for the Strapi transport.

    ``pages`` maps a service to a list of page payloads, or to an exception
    raised on every call.
    """

    def __init__(self, pages: dict[ServiceType, Any] | None = None, coupons: Any = None):
        self.pages = pages or {}
        self.coupons = coupons
        self.calls: list[tuple[str, int]] = []

    async def fetch_orders(self, service: ServiceType, **options: Any) -> dict[str, Any]:
        page = options.get("page", 1)
        self.calls.append((str(service), page))
        source = self.pages.get(service, [])
        if isinstance(source, BaseException):
            raise source
        if not source:
            return {"data": [], "meta": {}}
        return source[page - 1]

    async def fetch_coupon_redemptions(self, **options: Any) -> dict[str, Any]:
        self.calls.append(("coupons", options.get("page", 1)))
        if isinstance(self.coupons, BaseException):
            raise self.coupons
        return {"data": list(self.coupons or []), "meta": {}}


def single_page(*records: dict[str, Any]) -> list[dict[str, Any]]:
    return [{"data": list(records), "meta": {"pagination": {"page": 1, "pageCount": 1}}}]


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_order():
    counter = itertools.count(1)

    def _make(
        service: ServiceType | str = ServiceType.NANNIES,
        *,
        total: float = 100.0,
        created_at: str | None = stamp(2026, 10, 10),
        payment_status: PaymentStatus = PaymentStatus.PAYMENT_CONFIRMED,
        request_status: RequestStatus = RequestStatus.PENDING,
        **fields: Any,
    ):
        number = next(counter)
        model = ORDER_MODELS[ServiceType(service)]
        values = {
            "id": number,
            "document_id": f"doc-{number}",
            "order_id": f"ORDER-{number}",
            "price": total,
            "total": total,
            "original_price": total,
            "payment_status": payment_status,
            "request_status": request_status,
            "created_at": created_at,
        }
        values.update(fields)
        return model(**values)

    return _make
