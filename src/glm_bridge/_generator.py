"""ContentGenerator: the blocking host-facing entry point."""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterator, Mapping
from typing import Any

from glm_bridge._abort import check_abort
from glm_bridge._config import GLMConfig
from glm_bridge._endpoints import EndpointClient, Endpoints
from glm_bridge._exceptions import ConfigurationError
from glm_bridge._request import build_payload
from glm_bridge._response import StreamAssembler, parse_completion
from glm_bridge._sse import iter_chunks
from glm_bridge._thinking import resolve_thinking
from glm_bridge._types import (
    Content,
    ContentsInput,
    GenerationRequest,
    GenerationResponse,
    Part,
    StreamEvent,
    TextPart,
    ThoughtPart,
)
from glm_bridge._wire import parse_chat_completion


def _mapping_parts(item: Mapping[str, Any]) -> tuple[Part, ...]:
    role = item.get("role", "user")
    if "parts" in item:
        parts: list[Part] = []
        for raw in item["parts"]:
            if not isinstance(raw, Mapping) or not isinstance(raw.get("text"), str):
                raise ConfigurationError(f"Unsupported part for role {role!r}: {raw!r}")
            parts.append(ThoughtPart(raw["text"]) if raw.get("thought") else TextPart(raw["text"]))
        return tuple(parts)
    if "content" in item:
        text = item["content"]
    elif "text" in item:
        text = item["text"]
    else:
        raise ConfigurationError(
            f"Turn for role {role!r} has no 'content', 'text' or 'parts': {dict(item)!r}"
        )
    if not isinstance(text, str):
        raise ConfigurationError(f"Unsupported content for role {role!r}: {text!r}")
    return (TextPart(text),) if text else ()


def normalize_contents(contents: ContentsInput) -> tuple[Content, ...]:
    """Accept a prompt string, ``Content`` turns, or mapping turns.

    A mapping carries ``role`` plus ``content``/``text`` (a string) or
    ``parts`` (``{"text": ..., "thought": bool}`` items).
    """
    if isinstance(contents, str):
        return (Content(role="user", parts=(TextPart(contents),)),)
    turns: list[Content] = []
    for item in contents:
        if isinstance(item, Content):
            turns.append(item)
            continue
        turns.append(Content(role=item.get("role", "user"), parts=_mapping_parts(item)))
    return tuple(turns)


def prepare_call(
    config: GLMConfig,
    request: GenerationRequest,
    request_id: str,
    *,
    endpoint: str | None,
    stream: bool,
) -> tuple[Endpoints, dict[str, Any]]:
    """Everything a call needs before touching the network; raises eagerly."""
    if not isinstance(request_id, str):
        raise ConfigurationError("request_id must be a string")
    request = dataclasses.replace(
        request,
        model=request.model or config.model,
        contents=normalize_contents(request.contents),
    )
    thinking = resolve_thinking(
        request.config.thinking_config,
        disable_thinking=config.disable_thinking,
        clear_thinking=config.clear_thinking,
    )
    payload = build_payload(request, request_id, thinking, stream=stream)
    return Endpoints.resolve(endpoint, config.endpoint), payload


class ContentGenerator:
    """Generate content from GLM through the host's request/response contract.

    Usage::

        from glm_bridge import ContentGenerator, GenerationRequest, GLMConfig

        generator = ContentGenerator(GLMConfig.from_env())
        request = GenerationRequest(model="glm-4.7", contents="Hello!")
        response = generator.generate(request, "prompt-1")
        print(response.text)

    Holds only immutable configuration; calls are independent of each other.
    """

    def __init__(self, config: GLMConfig | None = None) -> None:
        self._config = config or GLMConfig.from_env()
        self._client = EndpointClient(self._config.api_key, user_agent=self._config.user_agent)

    @property
    def config(self) -> GLMConfig:
        return self._config

    def generate(
        self,
        request: GenerationRequest,
        request_id: str,
        *,
        endpoint: str | None = None,
        abort_signal: threading.Event | None = None,
        timeout: float | None = None,
    ) -> GenerationResponse:
        """Send one non-streaming request and translate the reply.

        ``abort_signal`` is checked before sending and after the reply arrives;
        the blocking request itself runs to completion (or ``timeout``).
        """
        endpoints, payload = prepare_call(
            self._config, request, request_id, endpoint=endpoint, stream=False
        )
        check_abort(abort_signal)
        raw = self._client.post(endpoints, payload, timeout=timeout)
        check_abort(abort_signal)
        return parse_completion(parse_chat_completion(raw), request_id)

    def generate_stream(
        self,
        request: GenerationRequest,
        request_id: str,
        *,
        endpoint: str | None = None,
        abort_signal: threading.Event | None = None,
        timeout: float | None = None,
    ) -> Iterator[StreamEvent]:
        """Stream delta events followed by one ``done`` event.

        The request is translated (and validated) immediately; the connection
        is opened when iteration starts.

        ``abort_signal`` is checked before connecting, after every chunk and
        before the ``done`` event. A read already blocked on the socket is not
        interrupted: the abort takes effect once that read returns. Pass
        ``timeout`` to bound how long a single read may block.
        """
        endpoints, payload = prepare_call(
            self._config, request, request_id, endpoint=endpoint, stream=True
        )
        return self._events(endpoints, payload, request_id, abort_signal, timeout)

    def _events(
        self,
        endpoints: Endpoints,
        payload: dict[str, Any],
        request_id: str,
        abort_signal: threading.Event | None,
        timeout: float | None,
    ) -> Iterator[StreamEvent]:
        assembler = StreamAssembler(request_id)
        check_abort(abort_signal)
        with self._client.stream(endpoints, payload, timeout=timeout) as byte_stream:
            for chunk in iter_chunks(byte_stream):
                check_abort(abort_signal)
                if (event := assembler.feed(chunk)) is not None:
                    yield event
            check_abort(abort_signal)
        yield from assembler.finish()
