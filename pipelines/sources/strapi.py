"""Strapi CMS transport for order and coupon-redemption collections.

Each service line runs its own Strapi instance; this module only builds
requests and returns the decoded ``{"data": [...], "meta": {...}}`` payload.
Normalization happens in ``pipelines.normalize``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from jobs.config import (
    COUPON_ENDPOINT,
    get_service_config,
    resolve_base_url,
    resolve_coupon_base_url,
    resolve_page_size,
    resolve_token,
)
from pipelines.common import fetch_json
from pipelines.model import ServiceType

DEFAULT_SORT = "createdAt:desc"

logger = logging.getLogger(__name__)


def build_query_params(
    *,
    page: int = 1,
    page_size: int | None = None,
    sort: str | None = DEFAULT_SORT,
    filters: Mapping[str, Any] | None = None,
    populate: str | None = "*",
) -> dict[str, str]:
    """Translate pagination/sort/filter options into Strapi query parameters."""

    params: dict[str, str] = {
        "pagination[page]": str(max(page, 1)),
        "pagination[pageSize]": str(page_size or resolve_page_size()),
    }
    if sort:
        params["sort"] = sort
    for key, value in (filters or {}).items():
        params[f"filters[{key}]"] = str(value)
    if populate:
        params["populate"] = populate
    return params


def _as_payload(payload: Any, source: str) -> dict[str, Any]:
    """Coerce a decoded response into ``{"data": list, "meta": mapping}``."""

    if isinstance(payload, list):
        return {"data": payload, "meta": {}}
    if not isinstance(payload, Mapping):
        logger.warning("Unexpected %s payload type %s; treating as empty.", source, type(payload).__name__)
        return {"data": [], "meta": {}}
    data = payload.get("data")
    meta = payload.get("meta")
    return {
        "data": list(data) if isinstance(data, list) else [],
        "meta": dict(meta) if isinstance(meta, Mapping) else {},
    }


async def fetch_orders(
    service: ServiceType | str,
    *,
    page: int = 1,
    page_size: int | None = None,
    sort: str | None = DEFAULT_SORT,
    filters: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Fetch one page of raw orders for a service line."""

    config = get_service_config(service)
    url = f"{resolve_base_url(config)}{config.endpoint}"
    params = build_query_params(page=page, page_size=page_size, sort=sort, filters=filters)

    logger.debug("Fetching %s page %s from %s", config.key, page, url)
    payload = _as_payload(
        await fetch_json(url, token=resolve_token(config), params=params),
        config.key.value,
    )
    logger.info("Fetched %s %s records (page %s).", len(payload["data"]), config.key, page)
    return payload


async def fetch_coupon_redemptions(
    *,
    page: int = 1,
    page_size: int | None = None,
    filters: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Fetch one page of raw coupon redemptions (hosted with the nannies CMS)."""

    url = f"{resolve_coupon_base_url()}{COUPON_ENDPOINT}"
    params = build_query_params(page=page, page_size=page_size, filters=filters)
    token = resolve_token(get_service_config(ServiceType.NANNIES))

    payload = _as_payload(await fetch_json(url, token=token, params=params), "coupon-redemptions")
    logger.info("Fetched %s coupon redemptions (page %s).", len(payload["data"]), page)
    return payload


class StrapiTransport:
    """Default transport used by the fetch orchestrator."""

    async def fetch_orders(self, service: ServiceType, **options: Any) -> dict[str, Any]:
        return await fetch_orders(service, **options)

    async def fetch_coupon_redemptions(self, **options: Any) -> dict[str, Any]:
        return await fetch_coupon_redemptions(**options)


__all__ = [
    "DEFAULT_SORT",
    "StrapiTransport",
    "build_query_params",
    "fetch_coupon_redemptions",
    "fetch_orders",
]
