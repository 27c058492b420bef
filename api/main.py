"""FastAPI service exposing the order analytics dashboards as JSON."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from analytics.dashboard import build_overview, build_service_dashboard
from analytics.periods import local_now
from analytics.projection import calculate_revenue_projection
from jobs.config import ServiceConfig, get_service_by_key
from pipelines.model import OrderBundle
from pipelines.orchestrator import OrderFetchError, OrderTransport, fetch_all_orders
from pipelines.sources.strapi import StrapiTransport

DEFAULT_PROJECTION_MONTHS = 3
MAX_PROJECTION_MONTHS = 24
load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="Service Order Analytics API", version="0.1.0")


def _configure_cors() -> None:
    raw_origins = os.getenv("API_CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )


_configure_cors()


def get_transport() -> OrderTransport:
    return StrapiTransport()


def get_now() -> datetime:
    return local_now()


async def get_bundle(transport: OrderTransport = Depends(get_transport)) -> OrderBundle:
    try:
        return await fetch_all_orders(transport)
    except OrderFetchError as exc:
        logger.error("Order fetch failed for every service line: %s", exc)
        raise HTTPException(status_code=503, detail="Order data is unavailable") from exc


def _resolve_service(service: str) -> ServiceConfig:
    config = get_service_by_key(service)
    if config is None:
        raise HTTPException(status_code=404, detail=f"Unknown service '{service}'")
    return config


def _serialize(value: Any) -> Any:
    return value.model_dump(mode="json", by_alias=True)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/dashboard")
def get_dashboard(
    bundle: OrderBundle = Depends(get_bundle),
    now: datetime = Depends(get_now),
) -> dict[str, Any]:
    return _serialize(build_overview(bundle, now=now))


@app.get("/services/{service}/dashboard")
def get_service_dashboard(
    config: ServiceConfig = Depends(_resolve_service),
    bundle: OrderBundle = Depends(get_bundle),
    now: datetime = Depends(get_now),
) -> dict[str, Any]:
    return _serialize(build_service_dashboard(bundle, config.key, now=now))


@app.get("/services/{service}/projection")
def get_service_projection(
    config: ServiceConfig = Depends(_resolve_service),
    months: int = Query(
        DEFAULT_PROJECTION_MONTHS,
        ge=1,
        le=MAX_PROJECTION_MONTHS,
        description="Number of future months to project",
    ),
    bundle: OrderBundle = Depends(get_bundle),
    now: datetime = Depends(get_now),
) -> dict[str, Any]:
    points = calculate_revenue_projection(bundle.by_service[config.key], months, now=now)
    return {
        "service": config.key.value,
        "count": len(points),
        "items": [_serialize(point) for point in points],
    }
