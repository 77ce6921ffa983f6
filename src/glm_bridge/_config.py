"""Adapter configuration and environment loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from glm_bridge._exceptions import ConfigurationError

API_KEY_ENV = "ZAI_API_KEY"
BASE_URL_ENV = "ZAI_BASE_URL"
MODEL_ENV = "GLM_MODEL"
CLEAR_THINKING_ENV = "GLM_CLEAR_THINKING"
DISABLE_THINKING_ENV = "GLM_DISABLE_THINKING"

DEFAULT_MODEL = "glm-4.7"
DEFAULT_USER_AGENT = "glm-bridge/0.1.0"


def _coerce_bool(v: str) -> bool:
    """Convert string to boolean using common conventions."""
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return _coerce_bool(raw)


def resolve_key(api_key: str | None, env_var: str = API_KEY_ENV) -> str:
    key = api_key or os.environ.get(env_var, "")
    if not key:
        raise ConfigurationError(
            f"No API key provided. Pass api_key= or set the {env_var} environment variable."
        )
    return key


@dataclass(frozen=True, slots=True)
class GLMConfig:
    """Immutable settings shared by every call a generator makes.

    ``endpoint`` overrides the target URL, ``clear_thinking`` resets reasoning
    each turn, and ``disable_thinking`` stops reasoning from being requested.
    """

    api_key: str = field(repr=False)
    model: str = DEFAULT_MODEL
    endpoint: str | None = None
    clear_thinking: bool = True
    disable_thinking: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("GLMConfig.api_key must not be empty.")

    @classmethod
    def from_env(
        cls,
        *,
        api_key: str | None = None,
        model: str | None = None,
        endpoint: str | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> GLMConfig:
        """Build a config from explicit arguments, falling back to the environment.

        The ``ZAI_BASE_URL`` variable is not read here: it is consulted at call
        time, below any explicit ``endpoint``.
        """
        return cls(
            api_key=resolve_key(api_key),
            model=model or os.environ.get(MODEL_ENV) or DEFAULT_MODEL,
            endpoint=endpoint,
            clear_thinking=_env_bool(CLEAR_THINKING_ENV, True),
            disable_thinking=_env_bool(DISABLE_THINKING_ENV, False),
            user_agent=user_agent,
        )
