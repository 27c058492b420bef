import pytest

from analytics.customers import get_high_value_customers, get_recent_transactions
from analytics.products import (
    calculate_visitors_by_service,
    get_top_products,
    get_top_services,
    infer_product_name,
)
from pipelines.model import (
    Customer,
    GearRefreshOrder,
    HomeCareOrder,
    NannyOrder,
    PaymentStatus,
    RequestStatus,
    ServiceType,
    empty_by_service,
)

from conftest import stamp


def test_recent_transactions_newest_first_without_cancelled(make_order):
    by_service = empty_by_service()
    by_service[ServiceType.NANNIES] = [
        make_order(total=10, created_at=stamp(2026, 10, 1)),
        make_order(total=20, created_at=stamp(2026, 10, 9), request_status=RequestStatus.CANCELLED),
    ]
    by_service[ServiceType.HOME_CARE] = [
        make_order(ServiceType.HOME_CARE, total=30, created_at=stamp(2026, 10, 5), full_name="Sara"),
        make_order(ServiceType.HOME_CARE, total=40, created_at=None),
    ]

    transactions = get_recent_transactions(by_service)

    assert [t.amount for t in transactions] == [30, 10, 40]
    assert transactions[0].service_name == "Home Care Services"
    assert transactions[0].customer_name == "Sara"
    assert transactions[0].currency == "AED"
    assert len(get_recent_transactions(by_service, limit=1)) == 1


def test_high_value_customers_group_by_email(make_order):
    orders = [
        make_order(total=100, email="Mona@Example.com", full_name="Mona", created_at=stamp(2026, 9, 1)),
        make_order(total=300, email="mona@example.com", full_name="Mona", created_at=stamp(2026, 10, 2)),
        make_order(total=250, customer=Customer(full_name="Ali", email="ali@example.com")),
        make_order(total=999, email="ali@example.com", payment_status=PaymentStatus.PAYMENT_FAILED),
    ]

    customers = get_high_value_customers(orders)

    assert [c.id for c in customers] == ["mona@example.com", "ali@example.com"]
    assert customers[0].total_spent == 400
    assert customers[0].order_count == 2
    assert customers[0].average_order_value == pytest.approx(200)
    assert customers[0].last_order_date == stamp(2026, 10, 2)
    assert customers[1].name == "Ali"


def test_orders_without_email_are_their_own_customer(make_order):
    orders = [make_order(total=10), make_order(total=20)]

    customers = get_high_value_customers(orders, limit=1)

    assert len(customers) == 1
    assert customers[0].total_spent == 20


@pytest.mark.parametrize(
    ("order", "expected"),
    [
        (NannyOrder(type="week"), "Weekly Nanny"),
        (NannyOrder(), "Daily Nanny"),
        (NannyOrder(type="hourly"), "Nanny Service"),
        (GearRefreshOrder(price=150), "Car Seat Installation (AED 150)"),
        (GearRefreshOrder(total=99.5), "Car Seat Installation (AED 99.5)"),
        (GearRefreshOrder(price=12345.67), "Car Seat Installation (AED 12345.67)"),
        (GearRefreshOrder(price=12345.74), "Car Seat Installation (AED 12345.74)"),
        (GearRefreshOrder(price=1500000), "Car Seat Installation (AED 1500000)"),
        (HomeCareOrder(property_type="apartment", no_of_rooms=2), "Apartment - 2 Rooms"),
        (HomeCareOrder(property_type="villa", no_of_rooms=1), "Villa - 1 Room"),
        (HomeCareOrder(), "Property - 0 Rooms"),
    ],
)
def test_infer_product_name(order, expected):
    assert infer_product_name(order) == expected


def test_top_products_grouped_by_service_and_product(make_order):
    by_service = empty_by_service()
    by_service[ServiceType.NANNIES] = [
        make_order(total=100, type="day"),
        make_order(total=100, type="day"),
        make_order(total=500, type="month"),
        make_order(total=900, type="month", request_status=RequestStatus.CANCELLED),
    ]
    by_service[ServiceType.GEAR_REFRESH] = [make_order(ServiceType.GEAR_REFRESH, total=150)]

    products = get_top_products(by_service)

    assert [(p.name, p.orders, p.revenue) for p in products] == [
        ("Monthly Nanny", 1, 500),
        ("Daily Nanny", 2, 200),
        ("Car Seat Installation (AED 150)", 1, 150),
    ]
    assert products[0].id == "nannies:Monthly Nanny"
    assert len(get_top_products(by_service, limit=2)) == 2


def test_top_services_one_row_per_service(make_order):
    by_service = empty_by_service()
    by_service[ServiceType.HOME_CARE] = [make_order(ServiceType.HOME_CARE, total=400)]
    by_service[ServiceType.NANNIES] = [make_order(total=100)]

    rows = get_top_services(by_service)

    assert [(row.service, row.orders, row.revenue) for row in rows] == [
        (ServiceType.HOME_CARE, 1, 400),
        (ServiceType.NANNIES, 1, 100),
        (ServiceType.GEAR_REFRESH, 0, 0),
    ]


def test_visitors_by_service(make_order):
    by_service = empty_by_service()
    by_service[ServiceType.GEAR_REFRESH] = [make_order(ServiceType.GEAR_REFRESH)] * 3

    visitors = calculate_visitors_by_service(by_service)

    assert [(v.service, v.orders) for v in visitors] == [("Nanny", 0), ("Gear", 3), ("Home", 0)]


def test_visitors_skip_cancelled_requests(make_order):
    by_service = empty_by_service()
    by_service[ServiceType.NANNIES] = [
        make_order(payment_status=PaymentStatus.PENDING_PAYMENT),
        make_order(request_status=RequestStatus.CANCELLED),
    ]

    visitors = calculate_visitors_by_service(by_service)

    assert visitors[0].orders == 1
