"""Exceptions raised by the GLM adapter."""

from __future__ import annotations

from typing import Any


class GLMBridgeError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(GLMBridgeError, ValueError):
    """Raised for an unsupported request shape or missing configuration."""


class ProtocolError(GLMBridgeError):
    """Raised when the vendor sends JSON (or an SSE record) that cannot be decoded."""

    def __init__(self, message: str, record: str = "") -> None:
        self.record = record
        super().__init__(message)


class UpstreamError(GLMBridgeError):
    """Raised when the endpoint returns an HTTP error that survived the fallback."""

    def __init__(self, status_code: int, body: dict[str, Any] | str, url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        where = f" from {url}" if url else ""
        super().__init__(f"HTTP {status_code}{where}: {body}")


class RateLimitError(UpstreamError):
    """Raised on HTTP 429; includes optional ``retry_after`` from the server."""

    def __init__(
        self,
        status_code: int,
        body: dict[str, Any] | str,
        url: str = "",
        retry_after: float | None = None,
    ) -> None:
        super().__init__(status_code, body, url)
        self.retry_after = retry_after


class ParseError(GLMBridgeError):
    """A tool call whose argument string is not a JSON object.

    Attached to the offending function-call part; never fatal to a response.
    """

    def __init__(self, tool_call_id: str, name: str, raw_arguments: str, reason: str) -> None:
        self.tool_call_id = tool_call_id
        self.name = name
        self.raw_arguments = raw_arguments
        super().__init__(f"Invalid arguments for tool call {name!r} ({tool_call_id}): {reason}")


class RequestCancelledError(GLMBridgeError):
    """Raised when the caller's abort signal fires during a call."""
