"""Async HTTP helpers using ``httpx``."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from typing import Any

import httpx

from glm_bridge._exceptions import ProtocolError, RateLimitError, UpstreamError
from glm_bridge._http import _retry_after


def _raise_for_status_httpx(r: httpx.Response, url: str) -> None:
    if r.is_success:
        return
    try:
        body: dict[str, Any] | str = r.json()
    except Exception:
        body = r.text
    if r.status_code == 429:
        raise RateLimitError(r.status_code, body, url, _retry_after(r.headers.get("Retry-After")))
    raise UpstreamError(r.status_code, body, url)


async def async_post_json(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: float | None = None,
) -> dict[str, Any]:
    """POST JSON asynchronously and return the parsed response."""
    r = await client.post(url, headers=headers, json=payload, timeout=timeout)
    _raise_for_status_httpx(r, url)
    try:
        body = r.json()
    except ValueError as exc:
        raise ProtocolError(
            f"Response from {url} is not valid JSON: {exc}", record=r.text
        ) from exc
    if not isinstance(body, dict):
        raise ProtocolError(f"Response from {url} is not a JSON object", record=r.text)
    return body


@contextlib.asynccontextmanager
async def async_open_stream(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: float | None = None,
) -> AsyncIterator[httpx.Response]:
    """POST and yield the open streaming response once the status is OK."""
    async with client.stream("POST", url, headers=headers, json=payload, timeout=timeout) as r:
        if not r.is_success:
            await r.aread()
            _raise_for_status_httpx(r, url)
        yield r
