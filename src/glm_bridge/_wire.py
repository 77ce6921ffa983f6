"""Vendor-side types for GLM chat completions, and their normalization.

GLM fields are loosely shaped: ``content`` and ``reasoning_content`` may be a
string, a list of typed parts, or ``null``, and most keys are optional. Raw
JSON is converted here, once, into the dataclasses below; nothing past this
module handles untyped vendor dicts.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from glm_bridge._exceptions import ProtocolError


@dataclass(frozen=True, slots=True)
class WireToolCall:
    """A complete tool call (non-streaming) or one fragment of it (streaming)."""

    index: int | None = None
    id: str = ""
    name: str = ""
    arguments: str = ""


@dataclass(frozen=True, slots=True)
class WireUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    reasoning_tokens: int = 0
    tool_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True, slots=True)
class WireMessage:
    """``choices[].message`` or ``choices[].delta``, normalized."""

    content: tuple[str, ...] = ()
    reasoning_content: tuple[str, ...] = ()
    tool_calls: tuple[WireToolCall, ...] = ()


@dataclass(frozen=True, slots=True)
class WireChoice:
    message: WireMessage
    finish_reason: str | None = None
    index: int = 0


@dataclass(frozen=True, slots=True)
class ChatCompletion:
    """A full non-streaming response body."""

    id: str = ""
    model: str = ""
    choices: tuple[WireChoice, ...] = ()
    usage: WireUsage | None = None


@dataclass(frozen=True, slots=True)
class ChatCompletionChunk:
    """One streamed SSE record."""

    id: str = ""
    model: str = ""
    choices: tuple[WireChoice, ...] = ()
    usage: WireUsage | None = None


def _expect_dict(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ProtocolError(f"Expected a JSON object for {where}, got {type(value).__name__}")
    return value


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return 0


def normalize_text(raw: Any, where: str) -> tuple[str, ...]:
    """Normalize a string / typed-part list / null into text fragments."""
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,) if raw else ()
    if isinstance(raw, list):
        texts: list[str] = []
        for item in raw:
            if isinstance(item, str):
                if item:
                    texts.append(item)
                continue
            part = _expect_dict(item, f"{where} part")
            # Non-text parts (images etc.) have no host counterpart in a reply.
            if part.get("type", "text") != "text":
                continue
            text = part.get("text")
            if text:
                texts.append(str(text))
        return tuple(texts)
    raise ProtocolError(f"Unsupported {where} shape: {type(raw).__name__}")


def _tool_call(raw: Any) -> WireToolCall:
    tc = _expect_dict(raw, "tool call")
    fn = tc.get("function") or {}
    fn = _expect_dict(fn, "tool call function")
    arguments = fn.get("arguments")
    if isinstance(arguments, (dict, list)):
        arguments = json.dumps(arguments)
    elif arguments is not None and not isinstance(arguments, str):
        arguments = str(arguments)
    index = tc.get("index")
    return WireToolCall(
        index=index if isinstance(index, int) else None,
        id=tc.get("id") or "",
        name=fn.get("name") or "",
        arguments=arguments or "",
    )


def _message(raw: Any) -> WireMessage:
    msg = _expect_dict(raw or {}, "message")
    raw_calls = msg.get("tool_calls") or []
    if not isinstance(raw_calls, list):
        raise ProtocolError("Expected a list for tool_calls")
    return WireMessage(
        content=normalize_text(msg.get("content"), "content"),
        reasoning_content=normalize_text(msg.get("reasoning_content"), "reasoning_content"),
        tool_calls=tuple(_tool_call(tc) for tc in raw_calls),
    )


def _choices(raw: dict[str, Any], key: str) -> tuple[WireChoice, ...]:
    raw_choices = raw.get("choices") or []
    if not isinstance(raw_choices, list):
        raise ProtocolError("Expected a list for choices")
    choices: list[WireChoice] = []
    for position, item in enumerate(raw_choices):
        choice = _expect_dict(item, "choice")
        index = choice.get("index")
        choices.append(
            WireChoice(
                message=_message(choice.get(key)),
                finish_reason=choice.get("finish_reason") or None,
                index=index if isinstance(index, int) else position,
            )
        )
    return tuple(choices)


def parse_usage(raw: Any) -> WireUsage | None:
    if raw is None:
        return None
    usage = _expect_dict(raw, "usage")
    reasoning = usage.get("reasoning_tokens")
    if reasoning is None:
        details = usage.get("completion_tokens_details") or {}
        if isinstance(details, dict):
            reasoning = details.get("reasoning_tokens")
    return WireUsage(
        prompt_tokens=_int(usage.get("prompt_tokens")),
        completion_tokens=_int(usage.get("completion_tokens")),
        reasoning_tokens=_int(reasoning),
        tool_tokens=_int(usage.get("tool_tokens")),
        total_tokens=_int(usage.get("total_tokens")),
    )


def parse_chat_completion(raw: Any) -> ChatCompletion:
    """Normalize a non-streaming response body."""
    body = _expect_dict(raw, "response body")
    return ChatCompletion(
        id=body.get("id") or "",
        model=body.get("model") or "",
        choices=_choices(body, "message"),
        usage=parse_usage(body.get("usage")),
    )


def parse_chat_chunk(raw: Any) -> ChatCompletionChunk:
    """Normalize one streamed record."""
    body = _expect_dict(raw, "stream record")
    return ChatCompletionChunk(
        id=body.get("id") or "",
        model=body.get("model") or "",
        choices=_choices(body, "delta"),
        usage=parse_usage(body.get("usage")),
    )
