"""Tool routing between the host's integrations and GLM-hosted tools."""

from glm_bridge.tools._routing import (
    GLM_AUTH_TYPE,
    HOST_WEB_SEARCH_TOOL,
    SearchRoute,
    resolve_search_tool,
    route_tools,
)

__all__ = [
    "GLM_AUTH_TYPE",
    "HOST_WEB_SEARCH_TOOL",
    "SearchRoute",
    "resolve_search_tool",
    "route_tools",
]
