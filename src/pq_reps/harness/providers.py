"""
Script providers for the harness.

  MockProvider   -- fixed script, no network (default)
  OpenAIProvider -- chat completion through the shared LLM client
"""

import logging
from abc import ABC, abstractmethod

from ..llm import CacheablePrompt, LLMClient, LLMError, create_client
from ..validation import SessionConfig
from .models import HarnessError

logger = logging.getLogger(__name__)

DEFAULT_HARNESS_TEMPERATURE = 0.2

MOCK_SCRIPT = "\n".join([
    "Sit comfortably. Close your eyes. Let your attention settle into the points of contact "
    "where your body meets the surface beneath you.",
    "Feel the weight of your body pressing down.",
    "Sense the texture of the surface against your skin.",
    "[pause:1.5]",
    "If your mind drifts, that’s normal. Gently return your attention to the sensations of touch.",
    "Notice the pressure in your legs, your back, your arms.",
    "Feel the temperature of the air on your skin.",
    "[pause:1.5]",
    "Stay with these sensations for a moment.",
    "[pause:10]",
    "[pause:1.5]",
    "Now, bring your awareness back to the points of contact. Feel the stability they provide.",
    "[pause:1.5]",
    "You can open your eyes. That’s it.",
    "[pause:1.5]",
])


class ScriptProvider(ABC):
    name: str = "provider"

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        inputs: SessionConfig | None = None,
    ) -> str:
        """Return the generated script text."""


class MockProvider(ScriptProvider):
    name = "mock"

    async def generate(self, system_prompt, user_prompt, model=None, temperature=None, inputs=None) -> str:
        return MOCK_SCRIPT


class OpenAIProvider(ScriptProvider):
    name = "openai"

    def __init__(self, client: LLMClient | None = None):
        self._client = client or create_client()

    async def generate(self, system_prompt, user_prompt, model=None, temperature=None, inputs=None) -> str:
        try:
            response = await self._client.call(
                prompt=CacheablePrompt(system=system_prompt, user_message=user_prompt),
                role="harness",
                temperature=DEFAULT_HARNESS_TEMPERATURE if temperature is None else temperature,
                model=model,
            )
        except LLMError as e:
            raise HarnessError(str(e)) from e
        return response.content.strip()


def get_provider(name: str) -> ScriptProvider:
    """
    Raises:
        HarnessError: For unknown names, or "openai" without OPENAI_API_KEY.
    """
    if name == "mock":
        return MockProvider()
    if name == "openai":
        try:
            return OpenAIProvider()
        except LLMError as e:
            raise HarnessError("OPENAI_API_KEY is required for the openai provider.") from e
    raise HarnessError('Provider must be "mock" or "openai".')
