import pytest

from analytics.dashboard import build_overview, build_service_dashboard
from pipelines.model import Location, OrderBundle, ServiceType, empty_by_service

from conftest import stamp


@pytest.fixture()
def bundle(make_order):
    by_service = empty_by_service()
    by_service[ServiceType.NANNIES] = [
        make_order(total=100, created_at=stamp(2026, 10, 18, hour=9), type="month"),
        make_order(total=200, created_at=stamp(2026, 9, 14), type="day"),
    ]
    by_service[ServiceType.GEAR_REFRESH] = [
        make_order(
            ServiceType.GEAR_REFRESH,
            total=150,
            created_at=stamp(2026, 10, 16),
            location=Location(city="Dubai", country="UAE", lat=25.2, lng=55.27),
        ),
    ]
    return OrderBundle.from_by_service(by_service, failed_services=(ServiceType.HOME_CARE,))


def test_overview_combines_every_service(bundle, now):
    overview = build_overview(bundle, now=now)

    assert overview.stats.total_revenue == 250
    assert [row.value for row in overview.service_breakdown] == [300, 150, 0]
    assert len(overview.sales_chart) == 7
    assert len(overview.earning_data) == 4
    assert overview.transactions[0].amount == 100
    assert overview.failed_services == [ServiceType.HOME_CARE]
    assert [v.orders for v in overview.visitors] == [2, 1, 0]


def test_overview_serializes_to_camel_case(bundle, now):
    payload = build_overview(bundle, now=now).model_dump(mode="json", by_alias=True)

    assert {"stats", "serviceBreakdown", "salesChart", "earningData", "failedServices"} <= set(payload)
    assert "totalRevenue" in payload["stats"]
    assert payload["failedServices"] == ["home-care"]


def test_nanny_dashboard_uses_monthly_earning(bundle, now):
    dashboard = build_service_dashboard(bundle, "nannies", now=now)

    assert dashboard.order_count == 2
    assert dashboard.stats.total_profit == pytest.approx(100 * 0.30 - 5)
    assert len(dashboard.monthly_earning) == 4
    assert dashboard.weekly_earning == []
    assert [p.name for p in dashboard.top_products] == ["Daily Nanny", "Monthly Nanny"]
    assert [p.month for p in dashboard.revenue_projection[:3]] == ["Jul 2026", "Aug 2026", "Sep 2026"]
    assert len(dashboard.revenue_projection) == 3 + 6
    assert set(dashboard.service_growth_projection) == {ServiceType.NANNIES}
    assert dashboard.peak_hours[0].order_count == 1


def test_other_services_use_daily_earning(bundle, now):
    dashboard = build_service_dashboard(bundle, ServiceType.GEAR_REFRESH, now=now)

    assert len(dashboard.weekly_earning) == 7
    assert dashboard.weekly_earning[-1].date == "Sun 18th Oct"
    assert dashboard.monthly_earning == []
    assert dashboard.geographic_markers[0].city == "Dubai"
    assert dashboard.top_cities_by_revenue[0].total_revenue == 150
    assert dashboard.revenue_projection == []


def test_empty_service_dashboard(bundle, now):
    dashboard = build_service_dashboard(bundle, ServiceType.HOME_CARE, now=now)

    assert dashboard.stats is None
    assert dashboard.order_count == 0
    assert dashboard.transactions == []
