"""Fan-out fetch of every service line into one normalized order bundle."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Protocol

from pipelines.accessors import is_cancelled
from pipelines.coupons import (
    CouponRedemption,
    apply_coupon_redemptions,
    normalize_coupon_redemptions,
)
from pipelines.model import BaseOrder, OrderBundle, ServiceType, empty_by_service
from pipelines.normalize import normalize_orders
from pipelines.sources.strapi import StrapiTransport

logger = logging.getLogger(__name__)

MAX_PAGES = 50

# Services whose endpoint mixes order kinds; their records are classified.
CLASSIFIED_SOURCES = frozenset({ServiceType.NANNIES})

# The coupon-redemption collection lives on this instance; see COUPON_API_URL.
COUPON_SOURCE = ServiceType.NANNIES


class OrderFetchError(RuntimeError):
    """Raised when no service line could be fetched at all."""


class OrderTransport(Protocol):
    async def fetch_orders(self, service: ServiceType, **options: Any) -> Mapping[str, Any]:
        ...

    async def fetch_coupon_redemptions(self, **options: Any) -> Mapping[str, Any]:
        ...


def _page_count(payload: Mapping[str, Any]) -> int:
    meta = payload.get("meta")
    pagination = meta.get("pagination") if isinstance(meta, Mapping) else None
    if not isinstance(pagination, Mapping):
        return 1
    try:
        return max(int(pagination.get("pageCount") or 1), 1)
    except (TypeError, ValueError):
        return 1


async def _collect_pages(
    fetch_page: Callable[[int], Awaitable[Mapping[str, Any]]], label: str
) -> list[Any]:
    """Follow Strapi pagination from page 1 up to the advertised page count."""

    first = await fetch_page(1)
    records = list(first.get("data") or [])
    page_count = _page_count(first)
    if page_count > MAX_PAGES:
        logger.warning("%s reports %s pages; reading the first %s only.", label, page_count, MAX_PAGES)
        page_count = MAX_PAGES
    for page in range(2, page_count + 1):
        payload = await fetch_page(page)
        records.extend(payload.get("data") or [])
    return records


async def _fetch_service_records(
    transport: OrderTransport, service: ServiceType, page_size: int | None
) -> list[Any]:
    async def fetch_page(page: int) -> Mapping[str, Any]:
        return await transport.fetch_orders(service, page=page, page_size=page_size)

    return await _collect_pages(fetch_page, f"{service} orders")


async def _fetch_coupon_records(transport: OrderTransport, page_size: int | None) -> list[Any]:
    async def fetch_page(page: int) -> Mapping[str, Any]:
        return await transport.fetch_coupon_redemptions(page=page, page_size=page_size)

    return await _collect_pages(fetch_page, "coupon redemptions")


def _failure(result: Any) -> BaseException | None:
    if isinstance(result, BaseException):
        if not isinstance(result, Exception):
            raise result
        return result
    return None


def _categorize(
    by_service: dict[ServiceType, list[BaseOrder]],
    source: ServiceType,
    records: list[Any],
    redemptions: list[CouponRedemption],
) -> None:
    origin = None if source in CLASSIFIED_SOURCES else source
    orders = normalize_orders(records, service=origin)
    if redemptions:
        orders = apply_coupon_redemptions(
            orders, redemptions, match_order_id=source == COUPON_SOURCE
        )
    for order in orders:
        by_service[order.service].append(order)


async def fetch_all_orders(
    transport: OrderTransport | None = None,
    *,
    include_coupons: bool = True,
    page_size: int | None = None,
) -> OrderBundle:
    """Fetch, normalize and classify orders from every service line.

    A failing service contributes no orders and is listed in
    ``failed_services``; only a failure of every service raises
    ``OrderFetchError``. Cancelled requests never reach the bundle.
    """

    if transport is None:
        transport = StrapiTransport()

    services = tuple(ServiceType)
    tasks = [_fetch_service_records(transport, service, page_size) for service in services]
    if include_coupons:
        tasks.append(_fetch_coupon_records(transport, page_size))

    results = await asyncio.gather(*tasks, return_exceptions=True)

    redemptions: list[CouponRedemption] = []
    if include_coupons:
        coupon_result = results[len(services)]
        error = _failure(coupon_result)
        if error is not None:
            logger.warning("Failed to fetch coupon redemptions: %r", error, exc_info=error)
        else:
            redemptions = normalize_coupon_redemptions(coupon_result)

    by_service = empty_by_service()
    failed: list[ServiceType] = []
    for service, result in zip(services, results):
        error = _failure(result)
        if error is not None:
            logger.warning("Failed to fetch %s orders: %r", service, error, exc_info=error)
            failed.append(service)
            continue
        logger.info("Processing %s %s records.", len(result), service)
        _categorize(by_service, service, result, redemptions)

    if len(failed) == len(services):
        raise OrderFetchError("Every service line failed to load orders.")

    filtered = {
        service: [order for order in orders if not is_cancelled(order)]
        for service, orders in by_service.items()
    }
    logger.info(
        "Service breakdown: %s",
        ", ".join(f"{service}={len(orders)}" for service, orders in filtered.items()),
    )
    return OrderBundle.from_by_service(filtered, failed_services=tuple(failed))


__all__ = [
    "CLASSIFIED_SOURCES",
    "COUPON_SOURCE",
    "MAX_PAGES",
    "OrderFetchError",
    "OrderTransport",
    "fetch_all_orders",
]
