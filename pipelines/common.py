"""Shared HTTP helpers for talking to the service CMS (Strapi) APIs."""

from __future__ import annotations

from typing import Any, Mapping

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

DEFAULT_TIMEOUT_SECONDS = 30.0
_DEFAULT_WAIT = wait_exponential(min=1, max=16)
_DEFAULT_STOP = stop_after_attempt(4)


Params = Mapping[str, Any] | None


def _is_retryable(exc: BaseException) -> bool:
    """Retry network hiccups and upstream 5xx; client errors fail fast."""

    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def auth_headers(token: str | None) -> dict[str, str]:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


@retry(
    wait=_DEFAULT_WAIT,
    stop=_DEFAULT_STOP,
    retry=retry_if_exception(_is_retryable),
    reraise=True,
)
async def fetch_json(
    url: str,
    *,
    token: str | None = None,
    params: Params = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    """GET ``url`` with bearer auth and return the decoded JSON payload.

    Transient failures are retried with exponential backoff. The last error is
    re-raised so callers decide whether a failed source is fatal.
    """

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(url, headers=auth_headers(token), params=params)

    response.raise_for_status()
    return response.json()


__all__ = ["auth_headers", "fetch_json", "DEFAULT_TIMEOUT_SECONDS"]
