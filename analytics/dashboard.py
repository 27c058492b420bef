"""Assemble the overview and per-service dashboards from one order bundle."""

from __future__ import annotations

import logging
from datetime import datetime

from pipelines.model import OrderBundle, ServiceType

from analytics.customers import get_high_value_customers, get_recent_transactions
from analytics.finance import calculate_dashboard_stats, calculate_service_breakdown
from analytics.geography import (
    get_geographic_markers,
    get_top_cities_by_orders,
    get_top_cities_by_revenue,
)
from analytics.periods import local_now
from analytics.products import calculate_visitors_by_service, get_top_products
from analytics.projection import calculate_revenue_projection, calculate_service_growth_projection
from analytics.schemas import OverviewDashboard, ServiceDashboard
from analytics.temporal import get_peak_hours_analysis, get_seasonal_trends, get_weekly_patterns
from analytics.timeseries import (
    generate_earning_data,
    generate_monthly_earning_data,
    generate_sales_chart_data,
)

logger = logging.getLogger(__name__)

OVERVIEW_TRANSACTIONS = 10
OVERVIEW_PRODUCTS = 5

SERVICE_TRANSACTIONS = 5
SERVICE_PRODUCTS = 3
SERVICE_PROJECTION_MONTHS = 6
SERVICE_CITIES = 5
SERVICE_PEAK_HOURS = 10
SERVICE_CUSTOMERS = 5


def build_overview(bundle: OrderBundle, *, now: datetime | None = None) -> OverviewDashboard:
    now = local_now(now)
    return OverviewDashboard(
        stats=calculate_dashboard_stats(bundle.orders, now=now),
        service_breakdown=calculate_service_breakdown(bundle.by_service),
        sales_chart=generate_sales_chart_data(bundle.orders, today=now),
        earning_data=generate_monthly_earning_data(bundle.orders, now=now),
        transactions=get_recent_transactions(bundle.by_service, OVERVIEW_TRANSACTIONS),
        top_products=get_top_products(bundle.by_service, OVERVIEW_PRODUCTS),
        visitors=calculate_visitors_by_service(bundle.by_service),
        failed_services=list(bundle.failed_services),
    )


def build_service_dashboard(
    bundle: OrderBundle, service: ServiceType | str, *, now: datetime | None = None
) -> ServiceDashboard:
    """Dashboard for a single service line.

    Only that service's orders feed the aggregates, so margins, cities and
    projections reflect the one line. A service with no orders gets
    ``stats=None`` and empty series.
    """

    service = ServiceType(service)
    now = local_now(now)
    orders = bundle.by_service.get(service, [])
    if not orders:
        logger.info("No %s orders available; returning an empty dashboard.", service)
        return ServiceDashboard(service=service)

    scoped = {service: orders}
    return ServiceDashboard(
        service=service,
        order_count=len(orders),
        stats=calculate_dashboard_stats(orders, service, now=now),
        sales_chart=generate_sales_chart_data(orders, today=now),
        weekly_earning=(
            [] if service == ServiceType.NANNIES else generate_earning_data(orders, today=now)
        ),
        monthly_earning=(
            generate_monthly_earning_data(orders, now=now) if service == ServiceType.NANNIES else []
        ),
        transactions=get_recent_transactions(scoped, SERVICE_TRANSACTIONS),
        top_products=get_top_products(scoped, SERVICE_PRODUCTS),
        revenue_projection=calculate_revenue_projection(
            orders, SERVICE_PROJECTION_MONTHS, now=now
        ),
        service_growth_projection={
            service: calculate_service_growth_projection(
                scoped, SERVICE_PROJECTION_MONTHS, now=now
            )[service]
        },
        top_cities_by_orders=get_top_cities_by_orders(scoped, SERVICE_CITIES),
        top_cities_by_revenue=get_top_cities_by_revenue(scoped, SERVICE_CITIES),
        geographic_markers=get_geographic_markers(scoped),
        peak_hours=get_peak_hours_analysis(orders, SERVICE_PEAK_HOURS),
        weekly_patterns=get_weekly_patterns(orders),
        seasonal_trends=get_seasonal_trends(orders),
        high_value_customers=get_high_value_customers(orders, SERVICE_CUSTOMERS),
    )


__all__ = ["build_overview", "build_service_dashboard"]
