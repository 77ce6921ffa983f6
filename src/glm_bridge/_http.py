"""Thin HTTP helpers around ``requests``."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from typing import Any

import requests

from glm_bridge._exceptions import ProtocolError, RateLimitError, UpstreamError


def _retry_after(raw: str | None) -> float | None:
    if raw is None:
        return None
    with contextlib.suppress(ValueError, TypeError):
        return float(raw)
    return None


def _raise_for_status(r: requests.Response, url: str) -> None:
    if not r.ok:
        try:
            body: dict[str, Any] | str = r.json()
        except Exception:
            body = r.text
        if r.status_code == 429:
            retry_after = _retry_after(r.headers.get("Retry-After"))
            raise RateLimitError(r.status_code, body, url, retry_after)
        raise UpstreamError(r.status_code, body, url)


def post_json(
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: float | None = None,
) -> dict[str, Any]:
    """POST JSON and return the parsed response, raising on HTTP errors."""
    r = requests.post(url, headers=headers, json=payload, timeout=timeout)
    _raise_for_status(r, url)
    try:
        body = r.json()
    except ValueError as exc:
        raise ProtocolError(
            f"Response from {url} is not valid JSON: {exc}", record=r.text
        ) from exc
    if not isinstance(body, dict):
        raise ProtocolError(f"Response from {url} is not a JSON object", record=r.text)
    return body


@contextlib.contextmanager
def open_stream(
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: float | None = None,
) -> Iterator[requests.Response]:
    """POST with ``stream=True`` and yield the open response once the status is OK.

    The body is left unread; the response is closed when the block exits.
    """
    with requests.post(url, headers=headers, json=payload, stream=True, timeout=timeout) as r:
        _raise_for_status(r, url)
        yield r
