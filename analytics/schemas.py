"""Derived dashboard values returned by the aggregation functions.

All values serialize to camelCase JSON (``model_dump(by_alias=True)``) so the
dashboard front end can consume them without renaming.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipelines.model import PaymentStatus, ServiceType


class DashboardValue(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class DashboardStats(DashboardValue):
    """Current calendar month compared to the previous one."""

    total_revenue: float = 0.0
    total_profit: float = 0.0
    total_cost: float = 0.0
    total_orders: int = 0
    completed_orders: int = 0
    pending_orders: int = 0
    cancelled_orders: int = 0
    average_order_value: float = 0.0
    revenue_change: float = 0.0
    profit_change: float = 0.0
    orders_change: float = 0.0
    average_order_value_change: float = 0.0


class CostBreakdown(DashboardValue):
    """Cost components of a revenue amount; ``profit`` is what remains."""

    revenue: float
    service_provider_cost: float
    platform_fee: float
    fixed_cost: float

    @property
    def total_cost(self) -> float:
        return self.service_provider_cost + self.platform_fee + self.fixed_cost

    @property
    def profit(self) -> float:
        return self.revenue - self.total_cost


class ServiceBreakdown(DashboardValue):
    service: str
    value: float
    color: str


class SalesChartPoint(DashboardValue):
    date: str
    current: float
    previous: float


class MonthlyEarningPoint(DashboardValue):
    week: str
    current_month: float
    one_month_ago: float
    two_months_ago: float


class Transaction(DashboardValue):
    id: str
    order_id: str
    customer_name: str
    service: ServiceType
    service_name: str
    amount: float
    currency: str
    status: PaymentStatus
    date: Optional[str] = None


class TopService(DashboardValue):
    id: str
    name: str
    service: ServiceType
    orders: int
    revenue: float
    currency: str
    status: str = "available"


class VisitorCount(DashboardValue):
    service: str
    orders: int
    color: str


class CityStats(DashboardValue):
    city: str
    country: str
    order_count: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0


class GeographicMarker(DashboardValue):
    id: str
    lat: float
    lng: float
    city: str
    country: str
    order_count: int
    total_revenue: float
    service_type: ServiceType


class PeakHourData(DashboardValue):
    hour: int
    order_count: int
    total_revenue: float
    display_hour: str


class WeeklyPatternData(DashboardValue):
    day: str
    day_index: int
    order_count: int
    total_revenue: float


class SeasonalData(DashboardValue):
    month: str
    month_index: int
    order_count: int
    total_revenue: float
    average_order_value: float


class HighValueCustomer(DashboardValue):
    id: str
    name: str
    email: Optional[str] = None
    total_spent: float
    order_count: int
    average_order_value: float
    last_order_date: Optional[str] = None


class ProjectionPoint(DashboardValue):
    month: str
    projected: float
    actual: Optional[float] = None


class OverviewDashboard(DashboardValue):
    stats: DashboardStats
    service_breakdown: list[ServiceBreakdown] = Field(default_factory=list)
    sales_chart: list[SalesChartPoint] = Field(default_factory=list)
    earning_data: list[MonthlyEarningPoint] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    top_products: list[TopService] = Field(default_factory=list)
    visitors: list[VisitorCount] = Field(default_factory=list)
    failed_services: list[ServiceType] = Field(default_factory=list)


class ServiceDashboard(DashboardValue):
    service: ServiceType
    order_count: int = 0
    stats: Optional[DashboardStats] = None
    sales_chart: list[SalesChartPoint] = Field(default_factory=list)
    weekly_earning: list[SalesChartPoint] = Field(default_factory=list)
    monthly_earning: list[MonthlyEarningPoint] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    top_products: list[TopService] = Field(default_factory=list)
    revenue_projection: list[ProjectionPoint] = Field(default_factory=list)
    service_growth_projection: dict[ServiceType, list[ProjectionPoint]] = Field(default_factory=dict)
    top_cities_by_orders: list[CityStats] = Field(default_factory=list)
    top_cities_by_revenue: list[CityStats] = Field(default_factory=list)
    geographic_markers: list[GeographicMarker] = Field(default_factory=list)
    peak_hours: list[PeakHourData] = Field(default_factory=list)
    weekly_patterns: list[WeeklyPatternData] = Field(default_factory=list)
    seasonal_trends: list[SeasonalData] = Field(default_factory=list)
    high_value_customers: list[HighValueCustomer] = Field(default_factory=list)


__all__ = [
    "CityStats",
    "CostBreakdown",
    "DashboardStats",
    "DashboardValue",
    "GeographicMarker",
    "HighValueCustomer",
    "MonthlyEarningPoint",
    "OverviewDashboard",
    "PeakHourData",
    "ProjectionPoint",
    "SalesChartPoint",
    "SeasonalData",
    "ServiceBreakdown",
    "ServiceDashboard",
    "TopService",
    "Transaction",
    "VisitorCount",
    "WeeklyPatternData",
]
