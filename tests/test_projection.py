from datetime import datetime

import pytest

from analytics.projection import (
    calculate_revenue_projection,
    calculate_service_growth_projection,
    weighted_average,
)
from pipelines.model import PaymentStatus, ServiceType, empty_by_service

from conftest import stamp


@pytest.fixture()
def history(make_order):
    return [
        make_order(total=100, created_at=stamp(2026, 7, 10)),
        make_order(total=200, created_at=stamp(2026, 9, 3)),
        make_order(total=100, created_at=stamp(2026, 9, 25)),
        make_order(total=5000, created_at=stamp(2026, 10, 2)),
        make_order(total=5000, created_at=stamp(2026, 6, 30)),
        make_order(total=700, created_at=stamp(2026, 8, 1), payment_status=PaymentStatus.PAYMENT_FAILED),
    ]


def test_weighted_average_skips_empty_months():
    assert weighted_average([100, 0, 300]) == pytest.approx(250)
    assert weighted_average([0, 0, 0]) == 0


def test_projection_uses_last_three_completed_months(history, now):
    points = calculate_revenue_projection(history, months_ahead=3, now=now)

    assert [p.month for p in points] == [
        "Jul 2026",
        "Aug 2026",
        "Sep 2026",
        "Oct 2026",
        "Nov 2026",
        "Dec 2026",
    ]
    assert [p.actual for p in points[:3]] == [100, 0, 300]
    assert [p.projected for p in points[3:]] == pytest.approx([252.5, 255.0, 257.5])
    assert all(p.actual is None for p in points[3:])


def test_historical_points_project_their_actuals(history, now):
    points = calculate_revenue_projection(history, now=now)

    for point in points[:3]:
        assert point.projected == point.actual


def test_future_points_stay_within_bounds(history, now):
    points = calculate_revenue_projection(history, months_ahead=24, now=now)
    average = 250

    future = points[3:]
    assert len(future) == 24
    assert all(0.85 * average <= p.projected <= 1.15 * average for p in future)
    assert future[-1].projected == pytest.approx(1.15 * average)


def test_no_history_returns_empty(make_order, now):
    only_current_month = [make_order(total=400, created_at=stamp(2026, 10, 5))]

    assert calculate_revenue_projection(only_current_month, now=now) == []
    assert calculate_revenue_projection([], now=now) == []


def test_projection_across_year_boundary(make_order):
    orders = [make_order(total=90, created_at=stamp(2025, 12, 5))]

    points = calculate_revenue_projection(orders, months_ahead=1, now=datetime(2026, 1, 20, 12))

    assert [p.month for p in points] == ["Oct 2025", "Nov 2025", "Dec 2025", "Jan 2026"]
    assert points[-1].projected == pytest.approx(90 * 1.01)


def test_service_growth_projection_in_orders(history, now):
    by_service = empty_by_service()
    by_service[ServiceType.HOME_CARE] = history

    growth = calculate_service_growth_projection(by_service, now=now)

    assert growth[ServiceType.NANNIES] == []
    home_care = growth[ServiceType.HOME_CARE]
    assert len(home_care) == 3 + 6
    assert home_care[0].projected == pytest.approx(100 / 300)
    assert home_care[1].actual == 0
    assert home_care[1].projected == home_care[1].actual
    assert home_care[3].actual is None
    assert home_care[3].projected == pytest.approx(252.5 / 300)
