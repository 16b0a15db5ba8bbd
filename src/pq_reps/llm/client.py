"""
OpenAI chat-completions client used by the script generator and the harness.

The system prompt goes first and stays byte-identical between calls, so
OpenAI's automatic prefix caching can reuse it; only the user message changes
per request. Each call reports token usage (including cached prompt tokens)
and the client keeps a running total.

Transient provider failures (rate limits, timeouts, connection drops, 5xx) are
retried here with exponential backoff; the SDK's own retries are disabled.

Usage:
    client = create_client()
    response = await client.call(
        CacheablePrompt(system=SCRIPT_SYSTEM_PROMPT, user_message=prompt),
        role="script",
    )
    response.content
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any

import openai

from ..security.prompt_guard import sanitize_for_prompt

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_MS = 60_000
DEFAULT_MAX_RETRIES = 2
DEFAULT_MAX_PROMPT_LENGTH = 200_000
RETRY_BASE_DELAY = 1.0
RETRY_MAX_DELAY = 30.0

# USD per 1K tokens for gpt-4o-mini; used for log lines only.
PRICE_INPUT = 0.00015
PRICE_CACHED_INPUT = 0.000075
PRICE_OUTPUT = 0.0006

TRANSIENT_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


class LLMError(RuntimeError):
    """No usable completion: the provider kept failing or returned nothing."""


class MissingApiKeyError(LLMError):
    code = "missing_openai_key"

    def __init__(self, message: str = "Missing OPENAI_API_KEY environment variable."):
        super().__init__(message)


def _get_api_key() -> str:
    return os.environ.get("OPENAI_API_KEY", "").strip()


def _get_model() -> str:
    return os.environ.get("OPENAI_MODEL", "").strip() or DEFAULT_MODEL


def _get_timeout_seconds() -> float:
    try:
        timeout_ms = int(os.environ.get("OPENAI_TIMEOUT_MS", ""))
    except ValueError:
        timeout_ms = 0
    if timeout_ms <= 0:
        timeout_ms = DEFAULT_TIMEOUT_MS
    return timeout_ms / 1000


@dataclass
class CacheablePrompt:
    """
    A chat prompt split by how often each part changes.

    `system` holds the versioned generator instructions, `context` optional
    framing shared by a batch of calls, `user_message` the per-request text.
    """

    system: str = ""
    context: str = ""
    user_message: str = ""

    def to_messages(self) -> list[dict[str, str]]:
        stable = [{"role": "system", "content": part} for part in (self.system, self.context) if part]
        return stable + [{"role": "user", "content": self.user_message}]

    @property
    def total_length(self) -> int:
        return sum(len(part) for part in (self.system, self.context, self.user_message))


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cached_input_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def estimated_cost_usd(self) -> float:
        fresh_input = self.input_tokens - self.cached_input_tokens
        return round(
            (fresh_input * PRICE_INPUT + self.cached_input_tokens * PRICE_CACHED_INPUT
             + self.output_tokens * PRICE_OUTPUT) / 1000,
            6,
        )

    def add(self, other: "TokenUsage") -> None:
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.cached_input_tokens += other.cached_input_tokens

    @classmethod
    def from_completion(cls, usage: Any) -> "TokenUsage":
        """Read the SDK's usage block; missing fields count as zero."""
        if usage is None:
            return cls()
        details = getattr(usage, "prompt_tokens_details", None)
        return cls(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            cached_input_tokens=getattr(details, "cached_tokens", 0) or 0,
        )


@dataclass
class LLMResponse:
    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str = ""
    latency_ms: float = 0.0

    @property
    def cached(self) -> bool:
        return self.usage.cached_input_tokens > 0


class LLMClient:
    """
    Async chat-completions client.

    Pass `sdk_client` to supply a preconfigured (or fake) AsyncOpenAI;
    otherwise an API key is required.
    """

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
        sdk_client: Any = None,
    ):
        self._model = model or _get_model()
        self._timeout = timeout if timeout is not None else _get_timeout_seconds()
        self._max_retries = max(max_retries, 0)
        self._part_limit = max_prompt_length // 3
        self._total_usage = TokenUsage()

        if sdk_client is None:
            key = api_key if api_key is not None else _get_api_key()
            if not key:
                raise MissingApiKeyError()
            sdk_client = openai.AsyncOpenAI(api_key=key, timeout=self._timeout, max_retries=0)
        self._client = sdk_client

        logger.info(f"[LLM] Client ready (model={self._model}, timeout={self._timeout:g}s)")

    @property
    def model(self) -> str:
        return self._model

    @property
    def total_usage(self) -> TokenUsage:
        """Usage summed over every successful call made by this client."""
        return self._total_usage

    async def call(
        self,
        prompt: str | CacheablePrompt,
        role: str = "assistant",
        temperature: float = 0.7,
        max_tokens: int | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """
        Run one completion, retrying transient failures.

        `role` only labels log lines. A plain string prompt becomes the user
        message. Raises LLMError when every attempt fails or the completion
        is blank.
        """
        if isinstance(prompt, str):
            prompt = CacheablePrompt(user_message=prompt)
        prompt = CacheablePrompt(
            system=sanitize_for_prompt(prompt.system, max_length=self._part_limit),
            context=sanitize_for_prompt(prompt.context, max_length=self._part_limit),
            user_message=sanitize_for_prompt(prompt.user_message, max_length=self._part_limit),
        )
        request: dict[str, Any] = {
            "model": model or self._model,
            "messages": prompt.to_messages(),
            "temperature": temperature,
        }
        if max_tokens is not None:
            request["max_tokens"] = max_tokens

        logger.info(
            f"[LLM] {role}: model={request['model']} prompt_chars={prompt.total_length}"
        )
        started = time.monotonic()
        completion = await self._create_with_retries(request)

        choice = completion.choices[0] if completion.choices else None
        content = ((choice.message.content if choice else None) or "").strip()
        response = LLMResponse(
            content=content,
            usage=TokenUsage.from_completion(getattr(completion, "usage", None)),
            model=getattr(completion, "model", None) or request["model"],
            latency_ms=(time.monotonic() - started) * 1000,
        )
        self._total_usage.add(response.usage)

        usage = response.usage
        logger.debug(
            f"[LLM] {role}: {usage.input_tokens} in ({usage.cached_input_tokens} cached), "
            f"{usage.output_tokens} out, ~${usage.estimated_cost_usd:.4f}, {response.latency_ms:.0f}ms"
        )
        if not content:
            raise LLMError("OpenAI completion returned empty content.")
        return response

    async def _create_with_retries(self, request: dict[str, Any]) -> Any:
        attempt = 0
        while True:
            try:
                return await self._client.chat.completions.create(**request)
            except TRANSIENT_ERRORS as e:
                if attempt >= self._max_retries:
                    logger.error(f"[LLM] Giving up after {attempt + 1} attempts: {type(e).__name__}")
                    if isinstance(e, openai.APITimeoutError):
                        raise LLMError(
                            f"OpenAI request timed out after {self._timeout * 1000:.0f} ms"
                        ) from e
                    raise LLMError(f"OpenAI completion failed: {e}") from e
                delay = min(RETRY_BASE_DELAY * 2**attempt, RETRY_MAX_DELAY)
                logger.warning(
                    f"[LLM] {type(e).__name__} on attempt {attempt + 1}, retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1
            except Exception as e:
                logger.error(f"[LLM] Completion failed: {type(e).__name__}")
                raise LLMError(f"OpenAI completion failed: {e}") from e


def create_client(model: str | None = None, api_key: str | None = None, **kwargs) -> LLMClient:
    """Client configured from OPENAI_* environment variables (raises MissingApiKeyError)."""
    return LLMClient(model=model, api_key=api_key, **kwargs)
