"""03 - Tool calling across turns, with thinking.

The model's reply (reasoning included) is resubmitted as a model turn via
``to_content()``, followed by a user turn carrying the tool result. Set
``GLM_DISABLE_THINKING=1`` to stop reasoning from being requested, or pass
``ThinkingConfig(include_thoughts=False)`` per request.
"""

import json

from glm_bridge import (
    Content,
    ContentGenerator,
    FunctionResponsePart,
    GenerationConfig,
    GenerationRequest,
    TextPart,
    ThinkingConfig,
    Tool,
)

weather = Tool(
    name="get_weather",
    description="Get current weather for a city",
    parameters={
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"],
    },
)
config = GenerationConfig(tools=(weather,), thinking_config=ThinkingConfig(include_thoughts=True))
generator = ContentGenerator()

history = [Content(role="user", parts=(TextPart("What's the weather in Paris?"),))]
first = generator.generate(GenerationRequest(contents=history, config=config), "tools-1")
print("Thinking:", first.thoughts[:200])

for call in first.function_calls:
    print(f"Model called {call.name}({json.dumps(call.args)})")
for error in first.parse_errors:
    print("Unparseable call:", error)

if first.function_calls:
    history.append(first.to_content())
    results = tuple(
        FunctionResponsePart(id=call.id, name=call.name, response={"temp_c": 18, "sky": "clear"})
        for call in first.function_calls
    )
    history.append(Content(role="user", parts=results))
    second = generator.generate(GenerationRequest(contents=history, config=config), "tools-2")
    print("Answer:", second.text)
else:
    print("Answer:", first.text)
