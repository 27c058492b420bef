"""End-to-end job: fetch every service line and print the resulting dashboard."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import TextIO

from dotenv import load_dotenv

from analytics.dashboard import build_overview, build_service_dashboard
from analytics.schemas import OverviewDashboard, ServiceDashboard
from pipelines.model import OrderBundle, ServiceType
from pipelines.orchestrator import OrderFetchError, OrderTransport, fetch_all_orders

load_dotenv()

logger = logging.getLogger(__name__)


async def load_all_async(
    transport: OrderTransport | None = None, *, include_coupons: bool = True
) -> OrderBundle:
    """Fetch, normalize and classify orders from every configured service."""

    bundle = await fetch_all_orders(transport, include_coupons=include_coupons)
    logger.info(
        "Loaded %s orders (%s failed services).", len(bundle.orders), len(bundle.failed_services)
    )
    return bundle


def build_dashboard(
    bundle: OrderBundle, service: ServiceType | None = None
) -> OverviewDashboard | ServiceDashboard:
    if service is None:
        return build_overview(bundle)
    return build_service_dashboard(bundle, service)


def main(
    service: ServiceType | None = None,
    *,
    transport: OrderTransport | None = None,
    stream: TextIO | None = None,
) -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    try:
        bundle = asyncio.run(load_all_async(transport))
    except OrderFetchError:
        logger.exception("Dashboard job failed: no service line could be loaded.")
        return 1

    dashboard = build_dashboard(bundle, service)
    payload = dashboard.model_dump(mode="json", by_alias=True)
    print(json.dumps(payload, indent=2), file=stream)
    logger.info("Dashboard job finished (%s).", service or "overview")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
