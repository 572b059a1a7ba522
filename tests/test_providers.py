"""Tests for LLM providers and response parsing (no live LLM calls)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import anthropic
import httpx
import ollama
import pytest

from paperlens.agents.models import KeywordsData, LlmConfig, Message
from paperlens.agents.providers import (
    AnthropicProvider,
    OllamaProvider,
    OpenAIProvider,
    build_provider,
    parse_json_response,
    strip_code_fence,
)
from paperlens.core.config import Settings
from paperlens.core.errors import ConfigError, LlmError


MESSAGES = [Message.system("You are helpful."), Message.user("Hi")]


def _ollama_reply(content):
    return SimpleNamespace(message=SimpleNamespace(content=content))


def _openai_reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


# ── Fenced JSON Parsing ──────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw",
    [
        '{"keywords": ["a"]}',
        '```json\n{"keywords": ["a"]}\n```',
        '```\n{"keywords": ["a"]}\n```',
        '  ```json {"keywords": ["a"]} ```  ',
    ],
)
def test_parse_json_tolerates_fencing(raw):
    assert parse_json_response(raw, KeywordsData).keywords == ["a"]


def test_strip_code_fence_leaves_plain_text():
    assert strip_code_fence("  plain  ") == "plain"


def test_parse_json_error_carries_truncated_excerpt():
    raw = "not json " + "x" * 1000
    with pytest.raises(LlmError) as excinfo:
        parse_json_response(raw, KeywordsData)
    message = str(excinfo.value)
    assert "not json" in message
    assert "x" * 600 not in message


def test_parse_json_schema_mismatch_raises():
    with pytest.raises(LlmError):
        parse_json_response('{"keywords": "not a list"}', KeywordsData)


# ── Ollama ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_ollama_complete_maps_options():
    provider = OllamaProvider(host="http://ollama:11434", default_model="llama3.2")
    provider.client.chat = AsyncMock(return_value=_ollama_reply("Hello"))

    config = LlmConfig(temperature=0.1, max_tokens=256, top_p=0.9, stop_sequences=["END"])
    assert await provider.complete(MESSAGES, config) == "Hello"

    kwargs = provider.client.chat.call_args.kwargs
    assert kwargs["model"] == "llama3.2"
    assert kwargs["messages"][0] == {"role": "system", "content": "You are helpful."}
    assert kwargs["options"] == {"temperature": 0.1, "num_predict": 256, "top_p": 0.9, "stop": ["END"]}
    assert "format" not in kwargs


@pytest.mark.asyncio
async def test_ollama_structured_passes_schema():
    provider = OllamaProvider()
    provider.client.chat = AsyncMock(return_value=_ollama_reply('{"keywords": ["attention"]}'))

    result = await provider.complete_structured(MESSAGES, LlmConfig(model="qwen3:8b"), KeywordsData)

    assert result.keywords == ["attention"]
    kwargs = provider.client.chat.call_args.kwargs
    assert kwargs["model"] == "qwen3:8b"
    assert kwargs["format"] == KeywordsData.model_json_schema()


@pytest.mark.asyncio
async def test_ollama_error_wrapped():
    provider = OllamaProvider()
    provider.client.chat = AsyncMock(side_effect=ollama.ResponseError("model not found"))
    with pytest.raises(LlmError, match="model not found"):
        await provider.complete(MESSAGES, LlmConfig())


@pytest.mark.asyncio
async def test_ollama_empty_reply_raises():
    provider = OllamaProvider()
    provider.client.chat = AsyncMock(return_value=_ollama_reply(""))
    with pytest.raises(LlmError):
        await provider.complete(MESSAGES, LlmConfig())


# ── OpenAI ───────────────────────────────────────────────────────────


def test_openai_requires_key():
    with pytest.raises(ConfigError):
        OpenAIProvider(api_key=None)


@pytest.mark.asyncio
async def test_openai_structured_requests_json_object():
    provider = OpenAIProvider(api_key="sk-test")
    create = AsyncMock(return_value=_openai_reply('```json\n{"keywords": ["bert"]}\n```'))
    provider.client.chat.completions.create = create

    result = await provider.complete_structured(MESSAGES, LlmConfig(), KeywordsData)

    assert result.keywords == ["bert"]
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["max_tokens"] == 4096


@pytest.mark.asyncio
async def test_openai_empty_choices_raises():
    provider = OpenAIProvider(api_key="sk-test")
    provider.client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[]))
    with pytest.raises(LlmError):
        await provider.complete(MESSAGES, LlmConfig())


# ── Anthropic ────────────────────────────────────────────────────────


def _anthropic_reply(*texts):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=t) for t in texts])


def test_anthropic_requires_key():
    with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
        AnthropicProvider(api_key="")


@pytest.mark.asyncio
async def test_anthropic_lifts_system_prompt():
    provider = AnthropicProvider(api_key="sk-ant-test")
    create = AsyncMock(return_value=_anthropic_reply("Hel", "lo"))
    provider.client.messages.create = create

    config = LlmConfig(temperature=0.2, max_tokens=512, stop_sequences=["END"])
    assert await provider.complete(MESSAGES, config) == "Hello"

    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "claude-sonnet-4-20250514"
    assert kwargs["system"] == "You are helpful."
    assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
    assert kwargs["max_tokens"] == 512
    assert kwargs["temperature"] == 0.2
    assert kwargs["stop_sequences"] == ["END"]
    assert "top_p" not in kwargs


@pytest.mark.asyncio
async def test_anthropic_structured_parses_fenced_json():
    provider = AnthropicProvider(api_key="sk-ant-test")
    provider.client.messages.create = AsyncMock(
        return_value=_anthropic_reply('```json\n{"keywords": ["rnn"]}\n```')
    )

    result = await provider.complete_structured(MESSAGES, LlmConfig(model="claude-opus-4"), KeywordsData)

    assert result.keywords == ["rnn"]
    assert provider.client.messages.create.call_args.kwargs["model"] == "claude-opus-4"


@pytest.mark.asyncio
async def test_anthropic_error_wrapped():
    provider = AnthropicProvider(api_key="sk-ant-test")
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    provider.client.messages.create = AsyncMock(side_effect=anthropic.APIConnectionError(request=request))
    with pytest.raises(LlmError, match="Anthropic request failed"):
        await provider.complete(MESSAGES, LlmConfig())


@pytest.mark.asyncio
async def test_anthropic_empty_reply_raises():
    provider = AnthropicProvider(api_key="sk-ant-test")
    provider.client.messages.create = AsyncMock(return_value=SimpleNamespace(content=[]))
    with pytest.raises(LlmError):
        await provider.complete(MESSAGES, LlmConfig())


# ── Factory ──────────────────────────────────────────────────────────


def test_build_provider_default_openai():
    provider = build_provider(Settings(openai_api_key="sk-test"))
    assert isinstance(provider, OpenAIProvider)
    assert provider.default_model == "gpt-4o"


def test_build_provider_ollama_with_model_override():
    settings = Settings(default_llm_provider="ollama", default_model="qwen3:8b")
    provider = build_provider(settings)
    assert isinstance(provider, OllamaProvider)
    assert provider.name == "ollama"
    assert provider.default_model == "qwen3:8b"


def test_build_provider_openai_without_key_fails():
    with pytest.raises(ConfigError):
        build_provider(Settings(), "openai")


def test_build_provider_anthropic():
    settings = Settings(anthropic_api_key="sk-ant-test", anthropic_model="claude-3-5-haiku-latest")
    provider = build_provider(settings, "anthropic")
    assert isinstance(provider, AnthropicProvider)
    assert provider.name == "anthropic"
    assert provider.default_model == "claude-3-5-haiku-latest"


def test_build_provider_anthropic_without_key_fails():
    with pytest.raises(ConfigError):
        build_provider(Settings(default_llm_provider="anthropic"))
