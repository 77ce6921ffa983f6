"""AsyncContentGenerator: the asyncio host-facing entry point."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Any

import httpx

from glm_bridge._abort import abort_scope
from glm_bridge._config import GLMConfig
from glm_bridge._endpoints import AsyncEndpointClient, Endpoints
from glm_bridge._generator import prepare_call
from glm_bridge._response import StreamAssembler, parse_completion
from glm_bridge._sse import aiter_chunks
from glm_bridge._types import GenerationRequest, GenerationResponse, StreamEvent
from glm_bridge._wire import ChatCompletionChunk, parse_chat_completion


class AsyncContentGenerator:
    """Async counterpart of ``ContentGenerator``.

    Usage::

        from glm_bridge import AsyncContentGenerator, GenerationRequest

        generator = AsyncContentGenerator()
        request = GenerationRequest(model="glm-4.7", contents="Hello!")
        async for event in generator.generate_stream(request, "prompt-1"):
            print(event.response.text, end="")

    Network I/O is the only suspension point. Cancelling the awaiting task, or
    setting ``abort_signal``, closes the transport; the latter raises
    ``RequestCancelledError``.
    """

    def __init__(
        self,
        config: GLMConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or GLMConfig.from_env()
        self._client = AsyncEndpointClient(
            self._config.api_key, user_agent=self._config.user_agent, transport=transport
        )

    @property
    def config(self) -> GLMConfig:
        return self._config

    async def generate(
        self,
        request: GenerationRequest,
        request_id: str,
        *,
        endpoint: str | None = None,
        abort_signal: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> GenerationResponse:
        """Send one non-streaming request and translate the reply."""
        endpoints, payload = prepare_call(
            self._config, request, request_id, endpoint=endpoint, stream=False
        )
        async with abort_scope(abort_signal):
            raw = await self._client.post(endpoints, payload, timeout=timeout)
        return parse_completion(parse_chat_completion(raw), request_id)

    def generate_stream(
        self,
        request: GenerationRequest,
        request_id: str,
        *,
        endpoint: str | None = None,
        abort_signal: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream delta events followed by one ``done`` event.

        The request is translated (and validated) immediately; the connection
        is opened on the first ``__anext__``.
        """
        endpoints, payload = prepare_call(
            self._config, request, request_id, endpoint=endpoint, stream=True
        )
        return self._events(endpoints, payload, request_id, abort_signal, timeout)

    async def _events(
        self,
        endpoints: Endpoints,
        payload: dict[str, Any],
        request_id: str,
        abort_signal: asyncio.Event | None,
        timeout: float | None,
    ) -> AsyncIterator[StreamEvent]:
        assembler = StreamAssembler(request_id)
        async with contextlib.AsyncExitStack() as stack:
            # Each await gets its own abort scope; none of them spans a yield.
            async with abort_scope(abort_signal):
                byte_stream = await stack.enter_async_context(
                    self._client.stream(endpoints, payload, timeout=timeout)
                )
            chunks = aiter_chunks(byte_stream)
            stack.push_async_callback(chunks.aclose)
            while True:
                chunk: ChatCompletionChunk | None
                async with abort_scope(abort_signal):
                    chunk = await anext(chunks, None)
                if chunk is None:
                    break
                if (event := assembler.feed(chunk)) is not None:
                    yield event
        for event in assembler.finish():
            yield event
