import httpx
import pytest
from tenacity import wait_none

from pipelines import common
from pipelines.common import auth_headers, fetch_json
from pipelines.model import ServiceType
from pipelines.sources import strapi
from pipelines.sources.strapi import build_query_params, fetch_coupon_redemptions, fetch_orders


def test_query_params_default_page_size_from_env(monkeypatch):
    monkeypatch.setenv("ORDERS_PAGE_SIZE", "250")

    params = build_query_params(page=2, filters={"paymentStatus": "Completed"})

    assert params == {
        "pagination[page]": "2",
        "pagination[pageSize]": "250",
        "sort": "createdAt:desc",
        "filters[paymentStatus]": "Completed",
        "populate": "*",
    }


def test_query_params_ignore_bad_page_size(monkeypatch):
    monkeypatch.setenv("ORDERS_PAGE_SIZE", "lots")

    params = build_query_params(sort=None, populate=None)

    assert params == {"pagination[page]": "1", "pagination[pageSize]": "1000"}


def test_auth_headers():
    assert "Authorization" not in auth_headers(None)
    assert auth_headers("secret")["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_fetch_orders_builds_service_url(monkeypatch):
    captured = {}

    async def fake_fetch_json(url, *, token=None, params=None, timeout=30.0):
        captured.update(url=url, token=token, params=params)
        return {"data": [{"id": 1}], "meta": {"pagination": {"pageCount": 1}}}

    monkeypatch.setattr(strapi, "fetch_json", fake_fetch_json)
    monkeypatch.setenv("HOME_CARE_API_URL", "https://care.example.com/")
    monkeypatch.setenv("HOME_CARE_API_TOKEN", "care-token")

    payload = await fetch_orders(ServiceType.HOME_CARE, page=3, page_size=50)

    assert captured["url"] == "https://care.example.com/api/service-requests"
    assert captured["token"] == "care-token"
    assert captured["params"]["pagination[page]"] == "3"
    assert payload["data"] == [{"id": 1}]


@pytest.mark.asyncio
async def test_unexpected_payload_shapes_become_empty(monkeypatch):
    async def fake_fetch_json(url, **_):
        return "oops"

    monkeypatch.setattr(strapi, "fetch_json", fake_fetch_json)

    assert await fetch_orders("nannies") == {"data": [], "meta": {}}


@pytest.mark.asyncio
async def test_coupon_redemptions_default_to_nannies_cms(monkeypatch):
    captured = {}

    async def fake_fetch_json(url, *, token=None, params=None, timeout=30.0):
        captured.update(url=url, token=token)
        return [{"id": 1, "couponCode": "X"}]

    monkeypatch.setattr(strapi, "fetch_json", fake_fetch_json)
    monkeypatch.delenv("COUPON_API_URL", raising=False)
    monkeypatch.setenv("NANNIES_API_URL", "https://nannies.example.com")
    monkeypatch.setenv("NANNIES_API_TOKEN", "nanny-token")

    payload = await fetch_coupon_redemptions()

    assert captured == {
        "url": "https://nannies.example.com/api/coupon-redemptions",
        "token": "nanny-token",
    }
    assert payload["data"] == [{"id": 1, "couponCode": "X"}]


class _FakeAsyncClient:
    """Replaces ``httpx.AsyncClient`` with a MockTransport-backed client."""

    responses: list[httpx.Response] = []
    real_client = httpx.AsyncClient

    def __new__(cls, *args, **kwargs):
        queue = cls.responses

        def handler(request: httpx.Request) -> httpx.Response:
            return queue.pop(0)

        return cls.real_client(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_json_raises_client_errors_without_retry(monkeypatch):
    _FakeAsyncClient.responses = [httpx.Response(404, json={"error": "missing"})]
    monkeypatch.setattr(common.httpx, "AsyncClient", _FakeAsyncClient)

    with pytest.raises(httpx.HTTPStatusError):
        await fetch_json("http://cms.test/api/orders")

    assert _FakeAsyncClient.responses == []


@pytest.mark.asyncio
async def test_fetch_json_retries_server_errors(monkeypatch):
    _FakeAsyncClient.responses = [
        httpx.Response(502),
        httpx.Response(200, json={"data": [], "meta": {}}),
    ]
    monkeypatch.setattr(common.httpx, "AsyncClient", _FakeAsyncClient)
    monkeypatch.setattr(fetch_json.retry, "wait", wait_none())

    assert await fetch_json("http://cms.test/api/orders") == {"data": [], "meta": {}}
