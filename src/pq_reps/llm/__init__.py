"""
LLM Client -- OpenAI chat-completions wrapper with prompt caching layout.

Usage:
    from .llm import create_client

    client = create_client()  # Reads OPENAI_API_KEY / OPENAI_MODEL
    response = await client.call(prompt="Write a script", role="script")
    print(response.content)
    print(f"Tokens: {response.usage}")
"""

from .client import (
    CacheablePrompt,
    LLMClient,
    LLMError,
    LLMResponse,
    MissingApiKeyError,
    TokenUsage,
    create_client,
)
