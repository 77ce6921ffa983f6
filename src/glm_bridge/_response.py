"""Response translation: GLM completions and stream chunks -> host responses."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from glm_bridge._exceptions import ParseError, ProtocolError
from glm_bridge._types import (
    Candidate,
    Content,
    FunctionCall,
    FunctionCallPart,
    GenerationResponse,
    Part,
    StreamEvent,
    TextPart,
    ThoughtPart,
    UsageMetadata,
)
from glm_bridge._wire import (
    ChatCompletion,
    ChatCompletionChunk,
    WireMessage,
    WireToolCall,
    WireUsage,
)

log = logging.getLogger(__name__)

_FINISH_REASONS = {
    "stop": "STOP",
    "tool_calls": "STOP",
    "length": "MAX_TOKENS",
    "sensitive": "SAFETY",
    "network_error": "OTHER",
}


def map_finish_reason(raw: str | None) -> str:
    if not raw:
        return "FINISH_REASON_UNSPECIFIED"
    return _FINISH_REASONS.get(raw, "OTHER")


def parse_tool_args(tool_call_id: str, name: str, raw_args: str) -> dict[str, object]:
    """Decode a tool-call argument string, raising ``ParseError`` if it is not a JSON object.

    An empty string is an error too: a zero-argument call arrives as ``"{}"``,
    while nothing at all means the arguments were cut off.
    """
    if not raw_args.strip():
        raise ParseError(tool_call_id, name, raw_args, "empty argument string")
    try:
        args = json.loads(raw_args)
    except json.JSONDecodeError as exc:
        raise ParseError(tool_call_id, name, raw_args, str(exc)) from exc
    if not isinstance(args, dict):
        raise ParseError(
            tool_call_id, name, raw_args, f"expected a JSON object, got {type(args).__name__}"
        )
    return args


def function_call_part(tool_call_id: str, name: str, raw_args: str) -> FunctionCallPart:
    try:
        args = parse_tool_args(tool_call_id, name, raw_args)
    except ParseError as exc:
        log.warning("%s", exc)
        return FunctionCallPart(
            function_call=FunctionCall(id=tool_call_id, name=name, args={}),
            raw_arguments=raw_args,
            error=exc,
        )
    return FunctionCallPart(
        function_call=FunctionCall(id=tool_call_id, name=name, args=args),
        raw_arguments=raw_args,
    )


def map_usage(usage: WireUsage) -> UsageMetadata:
    """Map GLM token counts, keeping ``total >= prompt + candidates``."""
    floor = usage.prompt_tokens + usage.completion_tokens
    total = usage.total_tokens
    if total < floor:
        log.debug("Raising reported total_tokens %d to %d", total, floor)
        total = floor
    return UsageMetadata(
        prompt_token_count=usage.prompt_tokens,
        candidates_token_count=usage.completion_tokens,
        thoughts_token_count=usage.reasoning_tokens,
        tool_use_prompt_token_count=usage.tool_tokens,
        total_token_count=total,
    )


def _text_parts(message: WireMessage) -> list[Part]:
    parts: list[Part] = [ThoughtPart(text) for text in message.reasoning_content]
    parts.extend(TextPart(text) for text in message.content)
    return parts


def _tool_call_parts(tool_calls: tuple[WireToolCall, ...]) -> list[Part]:
    return [function_call_part(tc.id, tc.name, tc.arguments) for tc in tool_calls]


def parse_completion(completion: ChatCompletion, request_id: str = "") -> GenerationResponse:
    """Translate a full GLM response.

    Reasoning parts come first, then answer text, then function calls.
    """
    if not completion.choices:
        raise ProtocolError("GLM response contains no choices")

    candidates = []
    for choice in completion.choices:
        parts = _text_parts(choice.message) + _tool_call_parts(choice.message.tool_calls)
        candidates.append(
            Candidate(
                content=Content(role="model", parts=tuple(parts)),
                finish_reason=map_finish_reason(choice.finish_reason),
                index=choice.index,
            )
        )

    return GenerationResponse(
        candidates=tuple(candidates),
        usage_metadata=map_usage(completion.usage or WireUsage()),
        response_id=completion.id,
        model_version=completion.model,
        request_id=request_id,
    )


@dataclass(slots=True)
class _PendingCall:
    id: str = ""
    name: str = ""
    arguments: str = ""


class StreamAssembler:
    """Per-call state for turning GLM stream chunks into host stream events.

    Tool-call fragments are accumulated until a chunk with a ``finish_reason``
    arrives (or the stream closes), since one call's arguments may be split
    across many deltas. Usage and finish reason are held for the terminal event.
    """

    def __init__(self, request_id: str = "") -> None:
        self._request_id = request_id
        self._pending: dict[int | str, _PendingCall] = {}
        self._keys_by_id: dict[str, int | str] = {}
        self._keys_by_index: dict[int, int | str] = {}
        self._last_key: int | str | None = None
        self._usage: WireUsage | None = None
        self._finish_reason: str | None = None
        self._response_id = ""
        self._model = ""

    def _accumulate(self, fragment: WireToolCall) -> None:
        # A known id or index maps back to the call it opened, however it was keyed.
        key: int | str | None
        if fragment.id and fragment.id in self._keys_by_id:
            key = self._keys_by_id[fragment.id]
        elif fragment.index is not None and fragment.index in self._keys_by_index:
            key = self._keys_by_index[fragment.index]
        elif fragment.index is not None:
            key = fragment.index
        elif fragment.id:
            key = fragment.id
        else:
            key = self._last_key
        if key is None:
            key = len(self._pending)
        acc = self._pending.get(key)
        if acc is None:
            acc = self._pending[key] = _PendingCall()
        if fragment.id:
            acc.id = fragment.id
            self._keys_by_id[fragment.id] = key
        if fragment.index is not None:
            self._keys_by_index[fragment.index] = key
        if fragment.name:
            acc.name = fragment.name
        acc.arguments += fragment.arguments
        self._last_key = key

    def _flush_calls(self) -> list[Part]:
        parts: list[Part] = [
            function_call_part(acc.id, acc.name, acc.arguments) for acc in self._pending.values()
        ]
        self._pending.clear()
        self._keys_by_id.clear()
        self._keys_by_index.clear()
        self._last_key = None
        return parts

    def _response(self, parts: list[Part], finish_reason: str = "") -> GenerationResponse:
        return GenerationResponse(
            candidates=(
                Candidate(
                    content=Content(role="model", parts=tuple(parts)),
                    finish_reason=finish_reason,
                ),
            ),
            response_id=self._response_id,
            model_version=self._model,
            request_id=self._request_id,
        )

    def feed(self, chunk: ChatCompletionChunk) -> StreamEvent | None:
        """Absorb one chunk; return a delta event if it produced any parts."""
        if chunk.id:
            self._response_id = chunk.id
        if chunk.model:
            self._model = chunk.model
        if chunk.usage is not None:
            self._usage = chunk.usage

        parts: list[Part] = []
        for choice in chunk.choices:
            parts.extend(_text_parts(choice.message))
            for fragment in choice.message.tool_calls:
                self._accumulate(fragment)
            if choice.finish_reason:
                self._finish_reason = choice.finish_reason
                parts.extend(self._flush_calls())

        if not parts:
            return None
        return StreamEvent(type="delta", response=self._response(parts))

    def finish(self) -> list[StreamEvent]:
        """Events to emit once the stream has closed: leftover calls, then ``done``."""
        events: list[StreamEvent] = []
        if self._pending:
            events.append(StreamEvent(type="delta", response=self._response(self._flush_calls())))
        done = GenerationResponse(
            candidates=(
                Candidate(
                    content=Content(role="model"),
                    finish_reason=map_finish_reason(self._finish_reason),
                ),
            ),
            usage_metadata=map_usage(self._usage or WireUsage()),
            response_id=self._response_id,
            model_version=self._model,
            request_id=self._request_id,
        )
        events.append(StreamEvent(type="done", response=done))
        return events
