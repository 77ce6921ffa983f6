"""Search-tool routing keyed on the host's active authentication mode."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from glm_bridge._types import ServerTool, Tool

GLM_AUTH_TYPE = "glm-api-key"
HOST_WEB_SEARCH_TOOL = "google_web_search"
VENDOR_WEB_SEARCH_TOOL = "web_search"

_DEFAULT_SEARCH_CONFIG: dict[str, Any] = {"enable": True, "search_result": True}


@dataclass(frozen=True, slots=True)
class SearchRoute:
    """Where the host's built-in web search should go.

    ``server_tool`` is the vendor-hosted capability to declare instead of the
    host's own search tool; ``None`` keeps the host integration.
    """

    auth_type: str | None
    server_tool: ServerTool | None = None

    @property
    def vendor_hosted(self) -> bool:
        return self.server_tool is not None


def resolve_search_tool(
    auth_type: str | None,
    *,
    search_config: Mapping[str, Any] | None = None,
) -> SearchRoute:
    if auth_type != GLM_AUTH_TYPE:
        return SearchRoute(auth_type=auth_type)
    config = {**_DEFAULT_SEARCH_CONFIG, **(search_config or {})}
    return SearchRoute(
        auth_type=auth_type,
        server_tool=ServerTool(type=VENDOR_WEB_SEARCH_TOOL, config=config),
    )


def route_tools(
    tools: Sequence[Tool | ServerTool],
    auth_type: str | None,
    *,
    search_config: Mapping[str, Any] | None = None,
) -> tuple[Tool | ServerTool, ...]:
    """Swap the host web-search declaration for the vendor's when GLM auth is active.

    Other tools pass through untouched and in order.
    """
    route = resolve_search_tool(auth_type, search_config=search_config)
    if route.server_tool is None:
        return tuple(tools)
    routed: list[Tool | ServerTool] = []
    for t in tools:
        if isinstance(t, Tool) and t.name == HOST_WEB_SEARCH_TOOL:
            if route.server_tool not in routed:
                routed.append(route.server_tool)
            continue
        routed.append(t)
    return tuple(routed)
