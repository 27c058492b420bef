"""Static configuration for the service lines and their upstream CMS APIs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv

from pipelines.model import ServiceType

load_dotenv()

logger = logging.getLogger(__name__)

# Pricing model shared by every service line.
PLATFORM_FEE_RATE = 0.05
FIXED_COST_PER_ORDER = 5.0
ASSUMED_AVERAGE_ORDER_VALUE = 300.0

DEFAULT_PAGE_SIZE = 1000
PAGE_SIZE_ENV = "ORDERS_PAGE_SIZE"

COUPON_API_URL_ENV = "COUPON_API_URL"
COUPON_ENDPOINT = "/api/coupon-redemptions"


@dataclass(frozen=True)
class ServiceConfig:
    """How to reach a service line's CMS and how to price its orders."""

    key: ServiceType
    name: str
    short_name: str
    base_url_env: str
    default_base_url: str
    endpoint: str
    token_env: str
    color: str
    icon: str
    margin_rate: float


SERVICE_CONFIGS: tuple[ServiceConfig, ...] = (
    ServiceConfig(
        key=ServiceType.NANNIES,
        name="Nanny Services",
        short_name="Nanny",
        base_url_env="NANNIES_API_URL",
        default_base_url="http://localhost:1337",
        endpoint="/api/orders",
        token_env="NANNIES_API_TOKEN",
        color="#0D363C",
        icon="baby",
        margin_rate=0.65,
    ),
    ServiceConfig(
        key=ServiceType.GEAR_REFRESH,
        name="Gear Refresh Services",
        short_name="Gear",
        base_url_env="GEAR_REFRESH_API_URL",
        default_base_url="http://localhost:1338",
        endpoint="/api/orders",
        token_env="GEAR_REFRESH_API_TOKEN",
        color="#4c6c5a",
        icon="car",
        margin_rate=0.70,
    ),
    ServiceConfig(
        key=ServiceType.HOME_CARE,
        name="Home Care Services",
        short_name="Home",
        base_url_env="HOME_CARE_API_URL",
        default_base_url="http://localhost:1339",
        endpoint="/api/service-requests",
        token_env="HOME_CARE_API_TOKEN",
        color="#D4AF37",
        icon="home",
        margin_rate=0.60,
    ),
)

_BY_KEY: dict[ServiceType, ServiceConfig] = {config.key: config for config in SERVICE_CONFIGS}


def get_service_config(service: ServiceType | str) -> ServiceConfig:
    return _BY_KEY[ServiceType(service)]


def get_service_by_key(key: str) -> ServiceConfig | None:
    try:
        return get_service_config(key)
    except ValueError:
        return None


def iter_services(keys: Iterable[str] | None = None) -> tuple[ServiceConfig, ...]:
    if keys is None:
        return SERVICE_CONFIGS
    selected = []
    for key in keys:
        config = get_service_by_key(key)
        if config:
            selected.append(config)
    return tuple(selected)


def margin_rate(service: ServiceType | str) -> float:
    return get_service_config(service).margin_rate


def resolve_base_url(config: ServiceConfig) -> str:
    return (os.getenv(config.base_url_env) or config.default_base_url).rstrip("/")


def resolve_token(config: ServiceConfig) -> str | None:
    token = os.getenv(config.token_env)
    if not token:
        logger.debug("%s not set; requesting %s without a bearer token.", config.token_env, config.key)
    return token or None


def resolve_coupon_base_url() -> str:
    explicit = os.getenv(COUPON_API_URL_ENV)
    if explicit:
        return explicit.rstrip("/")
    return resolve_base_url(get_service_config(ServiceType.NANNIES))


def resolve_page_size() -> int:
    raw = os.getenv(PAGE_SIZE_ENV)
    if not raw:
        return DEFAULT_PAGE_SIZE
    try:
        size = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %s.", PAGE_SIZE_ENV, raw, DEFAULT_PAGE_SIZE)
        return DEFAULT_PAGE_SIZE
    return max(size, 1)


__all__ = [
    "ASSUMED_AVERAGE_ORDER_VALUE",
    "COUPON_ENDPOINT",
    "DEFAULT_PAGE_SIZE",
    "FIXED_COST_PER_ORDER",
    "PLATFORM_FEE_RATE",
    "SERVICE_CONFIGS",
    "ServiceConfig",
    "get_service_by_key",
    "get_service_config",
    "iter_services",
    "margin_rate",
    "resolve_base_url",
    "resolve_coupon_base_url",
    "resolve_page_size",
    "resolve_token",
]
