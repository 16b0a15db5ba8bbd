"""LLM client and script service against a fake OpenAI SDK client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from pq_reps.llm import CacheablePrompt, LLMClient, LLMError, MissingApiKeyError
from pq_reps.llm import client as client_module
from pq_reps.services.script import SCRIPT_SYSTEM_PROMPT, ScriptGenerationError, generate_script


def completion(content="Sit.", prompt_tokens=10, completion_tokens=5, cached=0, model="gpt-4o-mini"):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            prompt_tokens_details=SimpleNamespace(cached_tokens=cached),
        ),
        model=model,
    )


def fake_sdk(*results):
    create = AsyncMock(side_effect=list(results))
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create))), create


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(client_module, "RETRY_BASE_DELAY", 0.0)


class TestLLMClient:
    async def test_call_returns_stripped_content_and_usage(self):
        sdk, create = fake_sdk(completion("  Sit comfortably.  ", cached=4))
        client = LLMClient(model="gpt-4o-mini", api_key="k", sdk_client=sdk)

        response = await client.call(CacheablePrompt(system="S", user_message="U"), role="script")

        assert response.content == "Sit comfortably."
        assert response.usage.input_tokens == 10
        assert response.usage.cached_input_tokens == 4
        assert response.usage.total_tokens == 15
        assert response.cached
        kwargs = create.await_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "S"},
            {"role": "user", "content": "U"},
        ]
        assert kwargs["model"] == "gpt-4o-mini"
        assert "max_tokens" not in kwargs

    async def test_per_call_model_override(self):
        sdk, create = fake_sdk(completion(model="gpt-4o"))
        client = LLMClient(model="gpt-4o-mini", api_key="k", sdk_client=sdk)
        await client.call("hi", model="gpt-4o", temperature=0.2, max_tokens=50)
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 50

    async def test_retries_transient_errors(self):
        sdk, create = fake_sdk(connection_error(), completion("Rest."))
        client = LLMClient(api_key="k", sdk_client=sdk, max_retries=2)
        response = await client.call("hi")
        assert response.content == "Rest."
        assert create.await_count == 2

    async def test_gives_up_after_max_retries(self):
        sdk, create = fake_sdk(connection_error(), connection_error(), connection_error())
        client = LLMClient(api_key="k", sdk_client=sdk, max_retries=2)
        with pytest.raises(LLMError, match="OpenAI completion failed"):
            await client.call("hi")
        assert create.await_count == 3

    async def test_non_retryable_error_fails_fast(self):
        sdk, create = fake_sdk(ValueError("bad request"))
        client = LLMClient(api_key="k", sdk_client=sdk, max_retries=2)
        with pytest.raises(LLMError):
            await client.call("hi")
        assert create.await_count == 1

    async def test_timeout_message(self):
        timeout = openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com"))
        sdk, _ = fake_sdk(timeout)
        client = LLMClient(api_key="k", sdk_client=sdk, max_retries=0, timeout=5.0)
        with pytest.raises(LLMError, match="timed out after 5000 ms"):
            await client.call("hi")

    async def test_empty_content_is_an_error(self):
        sdk, _ = fake_sdk(completion("   "))
        client = LLMClient(api_key="k", sdk_client=sdk)
        with pytest.raises(LLMError, match="empty content"):
            await client.call("hi")

    async def test_usage_accumulates(self):
        sdk, _ = fake_sdk(completion(), completion())
        client = LLMClient(api_key="k", sdk_client=sdk)
        await client.call("one")
        await client.call("two")
        assert client.total_usage.input_tokens == 20
        assert client.total_usage.output_tokens == 10

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(MissingApiKeyError) as exc_info:
            LLMClient()
        assert exc_info.value.code == "missing_openai_key"

    def test_model_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "gpt-test")
        sdk, _ = fake_sdk()
        assert LLMClient(api_key="k", sdk_client=sdk).model == "gpt-test"

    def test_prompt_without_system(self):
        assert CacheablePrompt(user_message="U").to_messages() == [{"role": "user", "content": "U"}]


class TestScriptService:
    async def test_generate_script_uses_versioned_system_prompt(self, mock_llm):
        result = await generate_script("Practice mode: tactile.", client=mock_llm)

        assert result.model == "mock-model"
        assert result.script.startswith("Sit comfortably")
        prompt = mock_llm.call.await_args.kwargs["prompt"]
        assert prompt.system == SCRIPT_SYSTEM_PROMPT
        assert prompt.user_message == "Practice mode: tactile."
        assert mock_llm.call.await_args.kwargs["role"] == "script"

    async def test_llm_error_becomes_generation_error(self, mock_llm):
        mock_llm.call.side_effect = LLMError("boom")
        with pytest.raises(ScriptGenerationError, match="boom") as exc_info:
            await generate_script("prompt", client=mock_llm)
        assert exc_info.value.code == "generate_failure"

    def test_system_prompt_is_versioned(self):
        assert SCRIPT_SYSTEM_PROMPT.splitlines()[1].startswith("Version: PQ-GEN-SYS-v")
        assert SCRIPT_SYSTEM_PROMPT.endswith("Return only the finished script text.")
