"""Host-side types: the generate-content request/response contract."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from glm_bridge._exceptions import ParseError

# --- Content parts ---


@dataclass(frozen=True, slots=True)
class TextPart:
    """Ordinary model or user text."""

    text: str
    thought: bool = field(default=False, init=False)


@dataclass(frozen=True, slots=True)
class ThoughtPart:
    """Reasoning ("thinking") text, kept apart from the final answer."""

    text: str
    thought: bool = field(default=True, init=False)


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """A tool call returned by the model."""

    id: str
    name: str
    args: dict[str, object]


@dataclass(frozen=True, slots=True)
class FunctionCallPart:
    """A function call inside a model turn.

    ``error`` is set when the vendor's argument string was not a JSON object;
    ``args`` is then empty and ``raw_arguments`` keeps the original text.
    """

    function_call: FunctionCall
    raw_arguments: str = ""
    error: ParseError | None = None
    thought: bool = field(default=False, init=False)


@dataclass(frozen=True, slots=True)
class FunctionResponsePart:
    """The result of a tool call, sent back to the model as opaque JSON."""

    id: str
    name: str
    response: dict[str, object]
    thought: bool = field(default=False, init=False)


Part: TypeAlias = TextPart | ThoughtPart | FunctionCallPart | FunctionResponsePart


@dataclass(frozen=True, slots=True)
class Content:
    """One conversation turn (role ``user`` or ``model``)."""

    role: str
    parts: tuple[Part, ...] = ()


ContentsInput: TypeAlias = tuple[Content, ...] | str | Sequence[Content | Mapping[str, Any]]


# --- Tools ---


@dataclass(frozen=True, slots=True)
class Tool:
    """A function declaration passed to the model."""

    name: str
    description: str
    parameters: dict[str, object]


@dataclass(frozen=True, slots=True)
class ServerTool:
    """A vendor-hosted tool (e.g. ``web_search``) executed server-side."""

    type: str
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolConfig:
    """Function-calling policy: ``AUTO``, ``ANY`` or ``NONE``."""

    mode: str | None = None
    allowed_function_names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ThinkingConfig:
    """Host-side thinking switch; ``include_thoughts=False`` turns reasoning off."""

    include_thoughts: bool | None = None


# --- Request ---


@dataclass(frozen=True, slots=True)
class GenerationConfig:
    """Per-request generation settings. Unset fields are not sent to the vendor."""

    tools: tuple[Tool | ServerTool, ...] = ()
    tool_config: ToolConfig | None = None
    thinking_config: ThinkingConfig | None = None
    system_instruction: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    stop_sequences: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """A host generate-content request.

    ``contents`` may also be a prompt string or ``{"role", "content"}`` dicts;
    the generators normalize it to ``Content`` turns. An empty ``model`` falls
    back to the configured one.
    """

    model: str = ""
    contents: ContentsInput = ()
    config: GenerationConfig = field(default_factory=GenerationConfig)


# --- Response ---


@dataclass(frozen=True, slots=True)
class UsageMetadata:
    """Token accounting for one exchange."""

    prompt_token_count: int = 0
    candidates_token_count: int = 0
    thoughts_token_count: int = 0
    tool_use_prompt_token_count: int = 0
    total_token_count: int = 0


@dataclass(frozen=True, slots=True)
class Candidate:
    """One generated candidate."""

    content: Content
    finish_reason: str = ""
    index: int = 0


@dataclass(frozen=True, slots=True)
class GenerationResponse:
    """Host-shaped response (or a streamed fragment of one)."""

    candidates: tuple[Candidate, ...] = ()
    usage_metadata: UsageMetadata | None = None
    response_id: str = ""
    model_version: str = ""
    request_id: str = ""

    @property
    def parts(self) -> tuple[Part, ...]:
        if not self.candidates:
            return ()
        return self.candidates[0].content.parts

    @property
    def text(self) -> str:
        """Concatenated answer text of the first candidate (thoughts excluded)."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def thoughts(self) -> str:
        return "".join(p.text for p in self.parts if isinstance(p, ThoughtPart))

    @property
    def function_calls(self) -> tuple[FunctionCall, ...]:
        """Function calls whose arguments parsed successfully."""
        return tuple(
            p.function_call
            for p in self.parts
            if isinstance(p, FunctionCallPart) and p.error is None
        )

    @property
    def parse_errors(self) -> tuple[ParseError, ...]:
        return tuple(
            p.error for p in self.parts if isinstance(p, FunctionCallPart) and p.error is not None
        )

    @property
    def finish_reason(self) -> str:
        return self.candidates[0].finish_reason if self.candidates else ""

    def to_content(self) -> Content:
        """Return the model turn to resubmit on the next call, reasoning included."""
        return Content(role="model", parts=self.parts)


# --- Streaming ---


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """A streaming event: ``delta`` (new parts only) or the terminal ``done``."""

    type: str
    response: GenerationResponse = field(default_factory=GenerationResponse)


# --- Thinking ---


@dataclass(frozen=True, slots=True)
class ThinkingState:
    """Per-call thinking decision."""

    requested: bool = True
    clear_prior_thinking: bool = True
