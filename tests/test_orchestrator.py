import httpx
import pytest

from pipelines.model import RequestStatus, ServiceType
from pipelines.orchestrator import MAX_PAGES, OrderFetchError, fetch_all_orders

from conftest import FakeTransport, single_page


def _http_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://cms.test/api/orders")
    return httpx.HTTPStatusError("boom", request=request, response=httpx.Response(status, request=request))


@pytest.mark.asyncio
async def test_bundle_groups_orders_by_service():
    transport = FakeTransport(
        pages={
            ServiceType.NANNIES: single_page(
                {"id": 1, "hours": 4, "total": 100},
                {"id": 2, "propertyType": "villa", "total": 200},
            ),
            ServiceType.GEAR_REFRESH: single_page({"id": 3, "total": 150}),
            ServiceType.HOME_CARE: single_page({"id": 4, "price": 320, "request_status": "pending"}),
        }
    )

    bundle = await fetch_all_orders(transport)

    assert [o.id for o in bundle.by_service[ServiceType.NANNIES]] == [1]
    assert [o.id for o in bundle.by_service[ServiceType.HOME_CARE]] == [2, 4]
    assert [o.id for o in bundle.by_service[ServiceType.GEAR_REFRESH]] == [3]
    assert [o.id for o in bundle.orders] == [1, 3, 2, 4]
    assert bundle.failed_services == ()


@pytest.mark.asyncio
async def test_failed_service_contributes_empty_list():
    transport = FakeTransport(
        pages={
            ServiceType.NANNIES: single_page({"id": 1, "hours": 2, "total": 90}),
            ServiceType.GEAR_REFRESH: _http_error(404),
            ServiceType.HOME_CARE: httpx.ConnectError("down"),
        }
    )

    bundle = await fetch_all_orders(transport)

    assert len(bundle.orders) == 1
    assert bundle.by_service[ServiceType.GEAR_REFRESH] == []
    assert set(bundle.failed_services) == {ServiceType.GEAR_REFRESH, ServiceType.HOME_CARE}


@pytest.mark.asyncio
async def test_every_service_failing_raises():
    transport = FakeTransport(pages={service: _http_error(500) for service in ServiceType})

    with pytest.raises(OrderFetchError):
        await fetch_all_orders(transport)


@pytest.mark.asyncio
async def test_cancelled_orders_are_dropped():
    transport = FakeTransport(
        pages={
            ServiceType.NANNIES: single_page(
                {"id": 1, "hours": 2, "requestStatus": "cancelled"},
                {"id": 2, "hours": 2, "requestStatus": "completed"},
            ),
        }
    )

    bundle = await fetch_all_orders(transport)

    assert [o.id for o in bundle.orders] == [2]
    assert all(o.request_status != RequestStatus.CANCELLED for o in bundle.orders)


@pytest.mark.asyncio
async def test_pagination_is_followed():
    pages = [
        {"data": [{"id": 1, "hours": 1}], "meta": {"pagination": {"page": 1, "pageCount": 3}}},
        {"data": [{"id": 2, "hours": 1}], "meta": {"pagination": {"page": 2, "pageCount": 3}}},
        {"data": [{"id": 3, "hours": 1}], "meta": {"pagination": {"page": 3, "pageCount": 3}}},
    ]
    transport = FakeTransport(pages={ServiceType.NANNIES: pages})

    bundle = await fetch_all_orders(transport, include_coupons=False)

    assert [o.id for o in bundle.orders] == [1, 2, 3]
    assert ("nannies", 3) in transport.calls
    assert not any(call[0] == "coupons" for call in transport.calls)


@pytest.mark.asyncio
async def test_page_count_is_capped():
    page = {"data": [{"id": 1, "hours": 1}], "meta": {"pagination": {"pageCount": MAX_PAGES + 10}}}
    transport = FakeTransport(pages={ServiceType.NANNIES: [page] * (MAX_PAGES + 10)})

    bundle = await fetch_all_orders(transport, include_coupons=False)

    assert len(bundle.orders) == MAX_PAGES


@pytest.mark.asyncio
async def test_coupon_redemptions_are_merged_before_filtering():
    transport = FakeTransport(
        pages={
            ServiceType.GEAR_REFRESH: single_page(
                {"id": 5, "documentId": "gear-5", "total": 200, "originalPrice": 200}
            ),
        },
        coupons=[{"couponCode": "CAR20", "orderDocumentId": "gear-5", "discountAmount": 20}],
    )

    bundle = await fetch_all_orders(transport)

    order = bundle.by_service[ServiceType.GEAR_REFRESH][0]
    assert order.coupon_code == "CAR20"
    assert order.total == 180


@pytest.mark.asyncio
async def test_coupon_failure_is_not_fatal():
    transport = FakeTransport(
        pages={ServiceType.GEAR_REFRESH: single_page({"id": 5, "total": 200})},
        coupons=_http_error(503),
    )

    bundle = await fetch_all_orders(transport)

    assert bundle.by_service[ServiceType.GEAR_REFRESH][0].total == 200
    assert bundle.failed_services == ()


@pytest.mark.asyncio
async def test_coupon_order_ids_stay_on_their_own_instance():
    transport = FakeTransport(
        pages={
            ServiceType.NANNIES: single_page({"id": 5, "hours": 2, "total": 200}),
            ServiceType.GEAR_REFRESH: single_page({"id": 5, "total": 300}),
        },
        coupons=[{"couponCode": "SAVE", "orderId": "ORDER-5", "finalAmount": 10}],
    )

    bundle = await fetch_all_orders(transport)

    nanny = bundle.by_service[ServiceType.NANNIES][0]
    gear = bundle.by_service[ServiceType.GEAR_REFRESH][0]
    assert (nanny.coupon_code, nanny.total) == ("SAVE", 10)
    assert (gear.coupon_code, gear.total) == (None, 300)
