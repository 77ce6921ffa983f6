"""Endpoint resolution and the primary -> secondary fallback policy."""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx
import requests

from glm_bridge._async_http import async_open_stream, async_post_json
from glm_bridge._config import BASE_URL_ENV, DEFAULT_USER_AGENT
from glm_bridge._exceptions import UpstreamError
from glm_bridge._http import open_stream, post_json

log = logging.getLogger(__name__)

DEFAULT_PRIMARY_ENDPOINT = "https://api.z.ai/api/coding/paas/v4/chat/completions"
SECONDARY_PATH = "/api/paas/v4/chat/completions"
_CHAT_COMPLETIONS = "/chat/completions"


def _normalize_endpoint(url: str) -> str:
    url = url.strip().rstrip("/")
    parts = urlsplit(url)
    if parts.path.endswith(_CHAT_COMPLETIONS):
        return url
    return urlunsplit(
        (parts.scheme, parts.netloc, parts.path + _CHAT_COMPLETIONS, parts.query, parts.fragment)
    )


def resolve_endpoint(per_call: str | None = None, configured: str | None = None) -> str:
    """Pick the primary URL: per-call, then config, then ``ZAI_BASE_URL``, then the default."""
    for source, candidate in (
        ("per-call override", per_call),
        ("configuration", configured),
        (BASE_URL_ENV, os.environ.get(BASE_URL_ENV)),
    ):
        if candidate and candidate.strip():
            url = _normalize_endpoint(candidate)
            log.debug("Using GLM endpoint %s from %s", url, source)
            return url
    return DEFAULT_PRIMARY_ENDPOINT


def fallback_endpoint(primary: str) -> str | None:
    """The fixed secondary path under the primary's authority, or None if identical."""
    parts = urlsplit(primary)
    secondary = urlunsplit((parts.scheme, parts.netloc, SECONDARY_PATH, "", ""))
    return None if secondary == primary else secondary


@dataclass(frozen=True, slots=True)
class Endpoints:
    primary: str
    secondary: str | None = None

    @classmethod
    def resolve(cls, per_call: str | None = None, configured: str | None = None) -> Endpoints:
        primary = resolve_endpoint(per_call, configured)
        return cls(primary=primary, secondary=fallback_endpoint(primary))


def build_headers(api_key: str, user_agent: str = DEFAULT_USER_AGENT) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "User-Agent": user_agent,
    }


def _stream_headers(headers: dict[str, str]) -> dict[str, str]:
    return {**headers, "Accept": "text/event-stream"}


def _log_fallback(endpoints: Endpoints, exc: Exception) -> None:
    log.warning(
        "GLM primary endpoint %s failed (%s); retrying once against %s",
        endpoints.primary,
        exc,
        endpoints.secondary,
    )


class EndpointClient:
    """Sends GLM requests over ``requests`` with a single fallback attempt."""

    def __init__(self, api_key: str, *, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._headers = build_headers(api_key, user_agent)

    def post(
        self,
        endpoints: Endpoints,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        try:
            return post_json(endpoints.primary, self._headers, payload, timeout)
        except (UpstreamError, requests.RequestException) as exc:
            if endpoints.secondary is None:
                raise
            _log_fallback(endpoints, exc)
            try:
                return post_json(endpoints.secondary, self._headers, payload, timeout)
            except UpstreamError as second:
                raise second from exc

    @contextlib.contextmanager
    def stream(
        self,
        endpoints: Endpoints,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> Iterator[Iterator[bytes]]:
        """Open a streaming call and yield its raw byte iterator.

        Fallback can only happen before any byte has been read.
        """
        headers = _stream_headers(self._headers)
        with contextlib.ExitStack() as stack:
            try:
                r = stack.enter_context(open_stream(endpoints.primary, headers, payload, timeout))
            except (UpstreamError, requests.RequestException) as exc:
                if endpoints.secondary is None:
                    raise
                _log_fallback(endpoints, exc)
                try:
                    r = stack.enter_context(
                        open_stream(endpoints.secondary, headers, payload, timeout)
                    )
                except UpstreamError as second:
                    raise second from exc
            yield r.iter_content(chunk_size=None)


class AsyncEndpointClient:
    """Sends GLM requests over ``httpx`` with a single fallback attempt.

    A fresh ``httpx.AsyncClient`` is opened per call so concurrent calls share
    no connection state. ``transport`` is passed through to it (tests use
    ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._headers = build_headers(api_key, user_agent)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport)

    async def post(
        self,
        endpoints: Endpoints,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        async with self._client() as client:
            try:
                return await async_post_json(
                    client, endpoints.primary, self._headers, payload, timeout
                )
            except (UpstreamError, httpx.TransportError) as exc:
                if endpoints.secondary is None:
                    raise
                _log_fallback(endpoints, exc)
                try:
                    return await async_post_json(
                        client, endpoints.secondary, self._headers, payload, timeout
                    )
                except UpstreamError as second:
                    raise second from exc

    @contextlib.asynccontextmanager
    async def stream(
        self,
        endpoints: Endpoints,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a streaming call and yield its raw async byte iterator."""
        headers = _stream_headers(self._headers)
        async with self._client() as client, contextlib.AsyncExitStack() as stack:
            try:
                r = await stack.enter_async_context(
                    async_open_stream(client, endpoints.primary, headers, payload, timeout)
                )
            except (UpstreamError, httpx.TransportError) as exc:
                if endpoints.secondary is None:
                    raise
                _log_fallback(endpoints, exc)
                try:
                    r = await stack.enter_async_context(
                        async_open_stream(client, endpoints.secondary, headers, payload, timeout)
                    )
                except UpstreamError as second:
                    raise second from exc
            yield r.aiter_bytes()
