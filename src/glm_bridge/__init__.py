"""glm-bridge: serve a generate-content host from GLM chat completions."""

from glm_bridge._async_generator import AsyncContentGenerator
from glm_bridge._config import GLMConfig
from glm_bridge._endpoints import DEFAULT_PRIMARY_ENDPOINT, Endpoints, resolve_endpoint
from glm_bridge._exceptions import (
    ConfigurationError,
    GLMBridgeError,
    ParseError,
    ProtocolError,
    RateLimitError,
    RequestCancelledError,
    UpstreamError,
)
from glm_bridge._generator import ContentGenerator
from glm_bridge._sse import SSEDecoder
from glm_bridge._thinking import resolve_thinking
from glm_bridge._types import (
    Candidate,
    Content,
    FunctionCall,
    FunctionCallPart,
    FunctionResponsePart,
    GenerationConfig,
    GenerationRequest,
    GenerationResponse,
    ServerTool,
    StreamEvent,
    TextPart,
    ThinkingConfig,
    ThinkingState,
    ThoughtPart,
    Tool,
    ToolConfig,
    UsageMetadata,
)

__all__ = [
    "DEFAULT_PRIMARY_ENDPOINT",
    "AsyncContentGenerator",
    "Candidate",
    "ConfigurationError",
    "Content",
    "ContentGenerator",
    "Endpoints",
    "FunctionCall",
    "FunctionCallPart",
    "FunctionResponsePart",
    "GLMBridgeError",
    "GLMConfig",
    "GenerationConfig",
    "GenerationRequest",
    "GenerationResponse",
    "ParseError",
    "ProtocolError",
    "RateLimitError",
    "RequestCancelledError",
    "SSEDecoder",
    "ServerTool",
    "StreamEvent",
    "TextPart",
    "ThinkingConfig",
    "ThinkingState",
    "ThoughtPart",
    "Tool",
    "ToolConfig",
    "UpstreamError",
    "UsageMetadata",
    "resolve_endpoint",
    "resolve_thinking",
]
