"""04 - Async generation and web-search routing.

Demonstrates AsyncContentGenerator with:
  - parallel requests with asyncio.gather()
  - an abort signal that cancels a stream
  - routing the host's web-search tool to GLM's hosted search
"""

import asyncio

from glm_bridge import (
    AsyncContentGenerator,
    GenerationConfig,
    GenerationRequest,
    RequestCancelledError,
    Tool,
)
from glm_bridge.tools import GLM_AUTH_TYPE, HOST_WEB_SEARCH_TOOL, route_tools


async def main():
    generator = AsyncContentGenerator()

    # --- Parallel requests ---
    print("=== Parallel Requests (3 concurrent) ===")
    questions = [
        "Name one planet in our solar system.",
        "Name one programming language.",
        "Name one chemical element.",
    ]
    responses = await asyncio.gather(
        *(
            generator.generate(GenerationRequest(contents=q), f"parallel-{i}")
            for i, q in enumerate(questions)
        )
    )
    for question, resp in zip(questions, responses, strict=True):
        print(f"  Q: {question}")
        print(f"  A: {resp.text}\n")

    # --- Abort a stream after one second ---
    print("=== Aborted stream ===")
    abort = asyncio.Event()
    asyncio.get_running_loop().call_later(1.0, abort.set)
    request = GenerationRequest(contents="Write a long story about a lighthouse.")
    try:
        async for event in generator.generate_stream(request, "abort-1", abort_signal=abort):
            print(event.response.text, end="", flush=True)
    except RequestCancelledError as exc:
        print(f"\n[aborted: {exc}]\n")

    # --- Hosted web search ---
    print("=== Web search ===")
    search = Tool(name=HOST_WEB_SEARCH_TOOL, description="Search the web", parameters={})
    tools = route_tools([search], GLM_AUTH_TYPE)
    request = GenerationRequest(
        contents="What happened in tech news today?", config=GenerationConfig(tools=tools)
    )
    resp = await generator.generate(request, "search-1")
    print(resp.text)


if __name__ == "__main__":
    asyncio.run(main())
