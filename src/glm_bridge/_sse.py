"""Server-sent-event decoding for GLM streaming responses.

``SSEDecoder`` is a push-style state machine: raw bytes go in through
``feed``, complete record payloads come out. ``iter_chunks`` and
``aiter_chunks`` drive it from a sync or async byte iterator and yield
normalized ``ChatCompletionChunk`` objects.
"""

from __future__ import annotations

import codecs
import json
import re
from collections.abc import AsyncGenerator, AsyncIterable, Iterable, Iterator

from glm_bridge._exceptions import ProtocolError
from glm_bridge._wire import ChatCompletionChunk, parse_chat_chunk

DONE_SENTINEL = "[DONE]"

_EOL = re.compile(r"\r\n|\r|\n")


class SSEDecoder:
    """Incrementally split an SSE byte stream into ``data`` payloads.

    States: between records (no data lines buffered) and inside a record
    (one or more ``data:`` lines buffered). A blank line dispatches the
    record; ``close`` dispatches a final record left without one.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._data: list[str] = []
        self._pending_cr = False
        self.done = False

    def _lines(self, text: str) -> Iterator[str]:
        if self._pending_cr and text.startswith("\n"):
            text = text[1:]
        self._pending_cr = False
        self._buffer += text
        while (match := _EOL.search(self._buffer)) is not None:
            line = self._buffer[: match.start()]
            self._buffer = self._buffer[match.end() :]
            if match.group() == "\r" and not self._buffer:
                # "\r\n" may be split across two transport chunks.
                self._pending_cr = True
            yield line

    def _dispatch(self) -> str | None:
        if not self._data:
            return None
        payload = "\n".join(self._data)
        self._data = []
        if not payload.strip():
            return None
        return payload

    def _process(self, line: str) -> str | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None
        field, _, value = line.partition(":")
        if field != "data":
            # event:, id:, retry: carry nothing the adapter uses.
            return None
        if value.startswith(" "):
            value = value[1:]
        self._data.append(value)
        return None

    def _decode(self, data: bytes, final: bool = False) -> str:
        try:
            return self._decoder.decode(data, final)
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"SSE stream is not valid UTF-8: {exc}") from exc

    def _feed_text(self, text: str) -> list[str]:
        payloads: list[str] = []
        for line in self._lines(text):
            payload = self._process(line)
            if payload is None:
                continue
            if payload.strip() == DONE_SENTINEL:
                self.done = True
                break
            payloads.append(payload)
        return payloads

    def feed(self, data: bytes) -> list[str]:
        """Consume raw bytes and return every record payload they complete."""
        if self.done:
            return []
        return self._feed_text(self._decode(data))

    def close(self) -> list[str]:
        """Flush at end of stream; returns the final record if one is pending."""
        if self.done:
            return []
        payloads = self._feed_text(self._decode(b"", final=True))
        if self.done:
            return payloads
        if self._buffer:
            line, self._buffer = self._buffer, ""
            self._process(line)
        payload = self._dispatch()
        if payload is not None and payload.strip() != DONE_SENTINEL:
            payloads.append(payload)
        self.done = True
        return payloads


def decode_record(payload: str) -> ChatCompletionChunk:
    """Parse one record's JSON, raising ``ProtocolError`` on malformed input."""
    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Malformed SSE record: {exc}", record=payload) from exc
    try:
        return parse_chat_chunk(raw)
    except ProtocolError as exc:
        raise ProtocolError(str(exc), record=payload) from exc


def iter_chunks(byte_stream: Iterable[bytes]) -> Iterator[ChatCompletionChunk]:
    """Lazily decode a byte stream into GLM chunks, stopping at the first bad record."""
    decoder = SSEDecoder()
    for data in byte_stream:
        for payload in decoder.feed(data):
            yield decode_record(payload)
        if decoder.done:
            return
    for payload in decoder.close():
        yield decode_record(payload)


async def aiter_chunks(
    byte_stream: AsyncIterable[bytes],
) -> AsyncGenerator[ChatCompletionChunk, None]:
    """Async counterpart of ``iter_chunks``."""
    decoder = SSEDecoder()
    async for data in byte_stream:
        for payload in decoder.feed(data):
            yield decode_record(payload)
        if decoder.done:
            return
    for payload in decoder.close():
        yield decode_record(payload)
