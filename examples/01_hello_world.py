"""01 - Hello World.

Minimal starting point: create a ContentGenerator from the environment
(ZAI_API_KEY must be set), send one prompt, and inspect the response text
and token usage.
"""

from glm_bridge import ContentGenerator, GenerationRequest

generator = ContentGenerator()

request = GenerationRequest(contents="What is the capital of France? Reply in one sentence.")
response = generator.generate(request, "hello-1")

print("Response:", response.text)
usage = response.usage_metadata
if usage:
    print(
        f"Tokens: prompt {usage.prompt_token_count}, "
        f"output {usage.candidates_token_count}, "
        f"reasoning {usage.thoughts_token_count}, total {usage.total_token_count}"
    )
