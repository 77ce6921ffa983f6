"""02 - Streaming.

generate_stream() yields ``delta`` events carrying only the parts that are
new in each chunk, then a single ``done`` event with usage and the finish
reason. Reasoning arrives as thought parts ahead of the answer text.
"""

from glm_bridge import ContentGenerator, GenerationRequest

generator = ContentGenerator()
request = GenerationRequest(contents="Why is the sky blue? One paragraph.")

for event in generator.generate_stream(request, "stream-1"):
    if event.type == "delta":
        if event.response.thoughts:
            print(f"[thinking] {event.response.thoughts}", end="", flush=True)
        print(event.response.text, end="", flush=True)
    elif event.type == "done":
        usage = event.response.usage_metadata
        print(f"\n\n[finish: {event.response.finish_reason}]")
        if usage:
            print(f"[tokens: {usage.total_token_count}]")
