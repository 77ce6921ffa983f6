"""Request translation: host GenerationRequest -> GLM chat-completions body."""

from __future__ import annotations

import json
import logging
from typing import Any

from glm_bridge._exceptions import ConfigurationError
from glm_bridge._thinking import thinking_to_wire
from glm_bridge._types import (
    Content,
    FunctionCallPart,
    FunctionResponsePart,
    GenerationRequest,
    ServerTool,
    TextPart,
    ThinkingState,
    ThoughtPart,
    Tool,
    ToolConfig,
)

log = logging.getLogger(__name__)

_SIMPLE_TOOL_CHOICES = {"AUTO": "auto", "NONE": "none", "ANY": "required"}


def _tool_to_wire(tool: Tool | ServerTool) -> dict[str, Any]:
    if isinstance(tool, ServerTool):
        return {"type": tool.type, tool.type: dict(tool.config)}
    if isinstance(tool, Tool):
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }
    raise ConfigurationError(f"Unsupported tool definition: {type(tool).__name__}")


def tool_choice_to_wire(tool_config: ToolConfig | None) -> str | dict[str, Any]:
    """Map the host function-calling mode onto GLM's ``tool_choice``."""
    mode = (tool_config.mode if tool_config else None) or "AUTO"
    mode = mode.upper()
    if mode not in _SIMPLE_TOOL_CHOICES:
        raise ConfigurationError(f"Unsupported tool-choice mode: {mode!r}")
    allowed = tool_config.allowed_function_names if tool_config else ()
    if mode == "ANY" and allowed:
        if len(allowed) > 1:
            raise ConfigurationError(
                "tool-choice mode 'ANY' supports at most one allowed function name, "
                f"got {list(allowed)}"
            )
        return {"type": "function", "function": {"name": allowed[0]}}
    return _SIMPLE_TOOL_CHOICES[mode]


def _function_call_to_wire(part: FunctionCallPart) -> dict[str, Any]:
    call = part.function_call
    if part.error is not None:
        arguments = part.raw_arguments
    else:
        arguments = json.dumps(call.args)
    return {
        "id": call.id,
        "type": "function",
        "function": {"name": call.name, "arguments": arguments},
    }


def _user_turn_to_wire(turn: Content) -> list[dict[str, Any]]:
    msgs: list[dict[str, Any]] = []
    texts: list[str] = []
    for part in turn.parts:
        if isinstance(part, FunctionResponsePart):
            msgs.append(
                {
                    "role": "tool",
                    "tool_call_id": part.id,
                    "content": json.dumps(part.response),
                }
            )
        elif isinstance(part, TextPart):
            texts.append(part.text)
        elif isinstance(part, ThoughtPart):
            # Reasoning only exists on model turns; a user-side thought is dropped.
            log.debug("Ignoring thought part in a user turn")
        else:
            raise ConfigurationError(
                f"Unsupported part in a user turn: {type(part).__name__}"
            )
    if texts:
        msgs.append({"role": "user", "content": "".join(texts)})
    return msgs


def _model_turn_to_wire(turn: Content) -> dict[str, Any]:
    texts: list[str] = []
    thoughts: list[str] = []
    tool_calls: list[dict[str, Any]] = []
    for part in turn.parts:
        if isinstance(part, ThoughtPart):
            thoughts.append(part.text)
        elif isinstance(part, TextPart):
            texts.append(part.text)
        elif isinstance(part, FunctionCallPart):
            tool_calls.append(_function_call_to_wire(part))
        else:
            raise ConfigurationError(
                f"Unsupported part in a model turn: {type(part).__name__}"
            )
    msg: dict[str, Any] = {"role": "assistant", "content": "".join(texts) if texts else None}
    if thoughts:
        msg["reasoning_content"] = "".join(thoughts)
    if tool_calls:
        msg["tool_calls"] = tool_calls
    return msg


def contents_to_messages(contents: tuple[Content, ...] | list[Content]) -> list[dict[str, Any]]:
    """Convert host turns into GLM ``messages``, preserving order."""
    msgs: list[dict[str, Any]] = []
    for turn in contents:
        if turn.role == "user":
            msgs.extend(_user_turn_to_wire(turn))
        elif turn.role in ("model", "assistant"):
            msgs.append(_model_turn_to_wire(turn))
        elif turn.role == "system":
            msgs.append(
                {
                    "role": "system",
                    "content": "".join(p.text for p in turn.parts if isinstance(p, TextPart)),
                }
            )
        else:
            raise ConfigurationError(f"Unsupported turn role: {turn.role!r}")
    return msgs


def build_payload(
    request: GenerationRequest,
    request_id: str,
    thinking: ThinkingState,
    *,
    stream: bool = False,
) -> dict[str, Any]:
    """Build the GLM request body for one call."""
    config = request.config

    msgs: list[dict[str, Any]] = []
    if config.system_instruction:
        msgs.append({"role": "system", "content": config.system_instruction})
    msgs.extend(contents_to_messages(request.contents))

    payload: dict[str, Any] = {"model": request.model, "messages": msgs}
    if config.tools:
        payload["tools"] = [_tool_to_wire(t) for t in config.tools]
        payload["tool_choice"] = tool_choice_to_wire(config.tool_config)
    elif config.tool_config is not None:
        # Validate the mode even when there is nothing to choose from.
        tool_choice_to_wire(config.tool_config)
    if config.temperature is not None:
        payload["temperature"] = config.temperature
    if config.top_p is not None:
        payload["top_p"] = config.top_p
    if config.max_output_tokens is not None:
        payload["max_tokens"] = config.max_output_tokens
    if config.stop_sequences:
        payload["stop"] = list(config.stop_sequences)
    payload["thinking"] = thinking_to_wire(thinking)
    payload["request_id"] = request_id
    if stream:
        payload["stream"] = True

    log.debug(
        "Built GLM payload: model=%s messages=%d tools=%d thinking=%s stream=%s",
        request.model,
        len(msgs),
        len(config.tools),
        payload["thinking"]["type"],
        stream,
    )
    return payload
