"""Thinking-state policy: whether reasoning is requested and prior reasoning cleared."""

from __future__ import annotations

from typing import Any

from glm_bridge._types import ThinkingConfig, ThinkingState


def resolve_thinking(
    host: ThinkingConfig | None,
    *,
    disable_thinking: bool = False,
    clear_thinking: bool = True,
) -> ThinkingState:
    """Decide the thinking state for one call.

    Reasoning is requested unless the adapter disables it or the host
    explicitly asks for no thoughts. Prior reasoning is cleared unless the
    caller opts into retaining it.
    """
    requested = not disable_thinking
    if host is not None and host.include_thoughts is False:
        requested = False
    return ThinkingState(requested=requested, clear_prior_thinking=clear_thinking)


def thinking_to_wire(state: ThinkingState) -> dict[str, Any]:
    return {
        "type": "enabled" if state.requested else "disabled",
        "clear_thinking": state.clear_prior_thinking,
    }
