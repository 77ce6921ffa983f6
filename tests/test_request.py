"""Tests for request translation."""

from __future__ import annotations

import json

import pytest

from glm_bridge._exceptions import ConfigurationError, ParseError
from glm_bridge._request import build_payload, contents_to_messages, tool_choice_to_wire
from glm_bridge._types import (
    Content,
    FunctionCall,
    FunctionCallPart,
    FunctionResponsePart,
    GenerationConfig,
    GenerationRequest,
    ServerTool,
    TextPart,
    ThinkingState,
    ThoughtPart,
    Tool,
    ToolConfig,
)

_THINKING = ThinkingState()


def _user(text: str) -> Content:
    return Content(role="user", parts=(TextPart(text),))


def test_minimal_payload() -> None:
    req = GenerationRequest(model="glm-4.7", contents=(_user("Hi"),))
    payload = build_payload(req, "prompt-123", _THINKING)
    assert payload == {
        "model": "glm-4.7",
        "messages": [{"role": "user", "content": "Hi"}],
        "thinking": {"type": "enabled", "clear_thinking": True},
        "request_id": "prompt-123",
    }


@pytest.mark.parametrize("request_id", ["prompt-123", "", "  spaced id  ", "ünïcode/🙂"])
def test_request_id_forwarded_verbatim(request_id: str) -> None:
    payload = build_payload(GenerationRequest(model="m"), request_id, _THINKING)
    assert payload["request_id"] == request_id


def test_stream_flag_only_when_streaming() -> None:
    req = GenerationRequest(model="m")
    assert "stream" not in build_payload(req, "id", _THINKING)
    assert build_payload(req, "id", _THINKING, stream=True)["stream"] is True


def test_thinking_field_from_state() -> None:
    state = ThinkingState(requested=False, clear_prior_thinking=True)
    payload = build_payload(GenerationRequest(model="m"), "id", state)
    assert payload["thinking"] == {"type": "disabled", "clear_thinking": True}


def test_system_instruction_and_sampling() -> None:
    config = GenerationConfig(
        system_instruction="Be brief",
        temperature=0.2,
        top_p=0.9,
        max_output_tokens=256,
        stop_sequences=("END",),
    )
    req = GenerationRequest(model="m", contents=(_user("Hi"),), config=config)
    payload = build_payload(req, "id", _THINKING)
    assert payload["messages"][0] == {"role": "system", "content": "Be brief"}
    assert payload["temperature"] == 0.2
    assert payload["top_p"] == 0.9
    assert payload["max_tokens"] == 256
    assert payload["stop"] == ["END"]


def test_unset_sampling_not_sent() -> None:
    payload = build_payload(GenerationRequest(model="m"), "id", _THINKING)
    for key in ("temperature", "top_p", "max_tokens", "stop", "tools", "tool_choice"):
        assert key not in payload


def test_tools_and_default_tool_choice(weather_tool: Tool) -> None:
    config = GenerationConfig(tools=(weather_tool,))
    payload = build_payload(GenerationRequest(model="m", config=config), "id", _THINKING)
    assert payload["tools"] == [
        {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Get current weather for a city",
                "parameters": weather_tool.parameters,
            },
        }
    ]
    assert payload["tool_choice"] == "auto"


def test_server_tool_wire_format(weather_tool: Tool) -> None:
    search = ServerTool(type="web_search", config={"enable": True})
    config = GenerationConfig(tools=(weather_tool, search))
    payload = build_payload(GenerationRequest(model="m", config=config), "id", _THINKING)
    assert len(payload["tools"]) == 2
    assert payload["tools"][1] == {"type": "web_search", "web_search": {"enable": True}}


@pytest.mark.parametrize(
    ("mode", "expected"),
    [(None, "auto"), ("AUTO", "auto"), ("auto", "auto"), ("NONE", "none"), ("ANY", "required")],
)
def test_tool_choice_modes(mode: str | None, expected: str) -> None:
    assert tool_choice_to_wire(ToolConfig(mode=mode)) == expected


def test_tool_choice_defaults_to_auto_without_config() -> None:
    assert tool_choice_to_wire(None) == "auto"


def test_tool_choice_single_allowed_function() -> None:
    choice = tool_choice_to_wire(ToolConfig(mode="ANY", allowed_function_names=("plan",)))
    assert choice == {"type": "function", "function": {"name": "plan"}}


def test_tool_choice_unsupported_mode() -> None:
    with pytest.raises(ConfigurationError, match="VALIDATED"):
        tool_choice_to_wire(ToolConfig(mode="VALIDATED"))


def test_tool_choice_many_allowed_names_rejected() -> None:
    with pytest.raises(ConfigurationError):
        tool_choice_to_wire(ToolConfig(mode="ANY", allowed_function_names=("a", "b")))


def test_unsupported_tool_choice_rejected_without_tools() -> None:
    config = GenerationConfig(tool_config=ToolConfig(mode="SOMETIMES"))
    with pytest.raises(ConfigurationError):
        build_payload(GenerationRequest(model="m", config=config), "id", _THINKING)


def test_model_turn_carries_reasoning_and_calls() -> None:
    call = FunctionCallPart(FunctionCall(id="call_1", name="do_work", args={"path": "foo"}))
    turn = Content(role="model", parts=(ThoughtPart("thinking"), TextPart("Hello"), call))
    [msg] = contents_to_messages([turn])
    assert msg["role"] == "assistant"
    assert msg["content"] == "Hello"
    assert msg["reasoning_content"] == "thinking"
    assert msg["tool_calls"][0]["id"] == "call_1"
    assert msg["tool_calls"][0]["function"]["name"] == "do_work"
    assert json.loads(msg["tool_calls"][0]["function"]["arguments"]) == {"path": "foo"}


def test_model_turn_without_text_has_null_content() -> None:
    call = FunctionCallPart(FunctionCall(id="c", name="f", args={}))
    [msg] = contents_to_messages([Content(role="model", parts=(call,))])
    assert msg["content"] is None
    assert "reasoning_content" not in msg


def test_unparsed_call_resends_raw_arguments() -> None:
    err = ParseError("c", "f", "{oops", "bad")
    call = FunctionCallPart(FunctionCall(id="c", name="f", args={}), "{oops", err)
    [msg] = contents_to_messages([Content(role="model", parts=(call,))])
    assert msg["tool_calls"][0]["function"]["arguments"] == "{oops"


def test_function_responses_become_tool_messages() -> None:
    turn = Content(
        role="user",
        parts=(
            FunctionResponsePart(id="call_1", name="do_work", response={"ok": True}),
            TextPart("continue"),
        ),
    )
    msgs = contents_to_messages([turn])
    assert msgs == [
        {"role": "tool", "tool_call_id": "call_1", "content": '{"ok": true}'},
        {"role": "user", "content": "continue"},
    ]


def test_multi_turn_order_preserved() -> None:
    msgs = contents_to_messages(
        [_user("one"), Content(role="model", parts=(TextPart("two"),)), _user("three")]
    )
    assert [m["role"] for m in msgs] == ["user", "assistant", "user"]
    assert [m["content"] for m in msgs] == ["one", "two", "three"]


def test_unknown_role_rejected() -> None:
    with pytest.raises(ConfigurationError, match="role"):
        contents_to_messages([Content(role="narrator", parts=(TextPart("x"),))])


def test_function_response_in_model_turn_rejected() -> None:
    turn = Content(role="model", parts=(FunctionResponsePart(id="c", name="f", response={}),))
    with pytest.raises(ConfigurationError):
        contents_to_messages([turn])


def test_unknown_tool_definition_rejected() -> None:
    config = GenerationConfig(tools=({"name": "raw"},))  # type: ignore[arg-type]
    with pytest.raises(ConfigurationError):
        build_payload(GenerationRequest(model="m", config=config), "id", _THINKING)
