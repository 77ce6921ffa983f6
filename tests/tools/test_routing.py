"""Tests for search-tool routing."""

from __future__ import annotations

from glm_bridge._request import build_payload
from glm_bridge._types import GenerationConfig, GenerationRequest, ServerTool, ThinkingState, Tool
from glm_bridge.tools import (
    GLM_AUTH_TYPE,
    HOST_WEB_SEARCH_TOOL,
    resolve_search_tool,
    route_tools,
)

SEARCH = Tool(name=HOST_WEB_SEARCH_TOOL, description="Search the web", parameters={})


def test_glm_auth_routes_to_vendor_search() -> None:
    route = resolve_search_tool(GLM_AUTH_TYPE)
    assert route.vendor_hosted
    assert route.server_tool == ServerTool(
        type="web_search", config={"enable": True, "search_result": True}
    )


def test_other_auth_keeps_host_search() -> None:
    for auth_type in ("oauth-personal", "gemini-api-key", None):
        route = resolve_search_tool(auth_type)
        assert not route.vendor_hosted
        assert route.auth_type == auth_type


def test_search_config_overrides_defaults() -> None:
    route = resolve_search_tool(GLM_AUTH_TYPE, search_config={"search_engine": "search_pro"})
    assert route.server_tool is not None
    assert route.server_tool.config == {
        "enable": True,
        "search_result": True,
        "search_engine": "search_pro",
    }


def test_route_tools_replaces_host_search(weather_tool: Tool) -> None:
    routed = route_tools([weather_tool, SEARCH], GLM_AUTH_TYPE)
    assert routed[0] is weather_tool
    assert isinstance(routed[1], ServerTool)
    assert routed[1].type == "web_search"
    assert len(routed) == 2


def test_route_tools_deduplicates_search(weather_tool: Tool) -> None:
    routed = route_tools([SEARCH, weather_tool, SEARCH], GLM_AUTH_TYPE)
    assert [type(t).__name__ for t in routed] == ["ServerTool", "Tool"]


def test_route_tools_passthrough_without_glm_auth(weather_tool: Tool) -> None:
    tools = [weather_tool, SEARCH]
    assert route_tools(tools, "oauth-personal") == (weather_tool, SEARCH)


def test_routed_search_reaches_payload(weather_tool: Tool) -> None:
    tools = route_tools([weather_tool, SEARCH], GLM_AUTH_TYPE)
    request = GenerationRequest(
        model="glm-4.7", contents=(), config=GenerationConfig(tools=tools)
    )
    payload = build_payload(request, "p", ThinkingState())
    assert payload["tools"][1] == {
        "type": "web_search",
        "web_search": {"enable": True, "search_result": True},
    }
    assert payload["tool_choice"] == "auto"
