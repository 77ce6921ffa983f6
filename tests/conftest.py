"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from glm_bridge._config import GLMConfig
from glm_bridge._types import Tool

PRIMARY_URL = "https://api.z.ai/api/coding/paas/v4/chat/completions"
SECONDARY_URL = "https://api.z.ai/api/paas/v4/chat/completions"

REASONING_RESPONSE: dict[str, Any] = {
    "id": "resp-1",
    "model": "glm-4.7",
    "usage": {
        "prompt_tokens": 10,
        "completion_tokens": 5,
        "total_tokens": 15,
        "reasoning_tokens": 2,
    },
    "choices": [
        {
            "finish_reason": "stop",
            "index": 0,
            "message": {
                "content": [{"type": "text", "text": "Hello world"}],
                "reasoning_content": [{"type": "text", "text": "thinking"}],
                "tool_calls": [
                    {
                        "id": "call_1",
                        "function": {"name": "do_work", "arguments": '{"path":"foo"}'},
                    }
                ],
            },
        }
    ],
}

SIMPLE_RESPONSE: dict[str, Any] = {
    "choices": [{"finish_reason": "stop", "index": 0, "message": {"content": "hi"}}],
}


def sse(*records: dict[str, Any] | str) -> bytes:
    """Frame records as ``data: ...`` SSE events."""
    out = []
    for record in records:
        data = record if isinstance(record, str) else json.dumps(record)
        out.append(f"data: {data}\n\n")
    return "".join(out).encode("utf-8")


TEXT_CHUNK: dict[str, Any] = {
    "id": "chunk",
    "model": "glm-4.7",
    "choices": [{"delta": {"content": [{"type": "text", "text": "Hi"}]}, "finish_reason": None}],
}

TOOL_CHUNK: dict[str, Any] = {
    "id": "chunk",
    "model": "glm-4.7",
    "choices": [
        {
            "delta": {
                "tool_calls": [
                    {"id": "call", "function": {"name": "plan", "arguments": '{"x":1}'}}
                ]
            },
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10},
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "ZAI_API_KEY",
        "ZAI_BASE_URL",
        "GLM_MODEL",
        "GLM_CLEAR_THINKING",
        "GLM_DISABLE_THINKING",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config() -> GLMConfig:
    return GLMConfig(api_key="test-key", user_agent="test-agent")


@pytest.fixture
def weather_tool() -> Tool:
    return Tool(
        name="get_weather",
        description="Get current weather for a city",
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
    )


class MockResponse:
    """Mimics ``requests.Response`` for testing post_json / open_stream."""

    def __init__(
        self,
        json_data: Any = None,
        status_code: int = 200,
        text: str = "",
        chunks: list[bytes] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self._json_data = json_data
        self.text = text or ""
        self.ok = 200 <= status_code < 300
        self._chunks = chunks or []
        self.headers: dict[str, str] = headers or {}
        self.closed = False

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON")
        return self._json_data

    def iter_content(self, **_kwargs: object) -> list[bytes]:
        return self._chunks

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> MockResponse:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@pytest.fixture
def mock_post(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Monkeypatch ``requests.post`` and return the mock."""
    mock = MagicMock()
    monkeypatch.setattr("requests.post", mock)
    return mock
