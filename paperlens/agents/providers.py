"""LLM completion providers: Ollama (local), OpenAI-compatible APIs and Anthropic."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional, TypeVar

import anthropic
import httpx
import ollama
import openai
from pydantic import BaseModel, ValidationError

from paperlens.agents.models import LlmConfig, Message
from paperlens.core.config import DEFAULT_OLLAMA_URL, LlmProviderName, Settings
from paperlens.core.errors import ConfigError, LlmError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)
_EXCERPT_LIMIT = 500
_ANTHROPIC_MAX_TOKENS = 4096


# ── Response Parsing ─────────────────────────────────────────────────


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence if present."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def parse_json_response(response: str, model_cls: type[T]) -> T:
    """Decode a (possibly fenced) JSON reply into *model_cls*."""
    body = strip_code_fence(response)
    try:
        return model_cls.model_validate(json.loads(body))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise LlmError(
            f"Failed to parse {model_cls.__name__} from LLM response: {exc}. "
            f"Response: {response[:_EXCERPT_LIMIT]}"
        ) from exc


# ── Provider Base ────────────────────────────────────────────────────


class LlmProvider(ABC):
    """Chat-completion backend used by :class:`PaperAnalyzer`."""

    name: str = ""

    def __init__(self, default_model: str):
        self.default_model = default_model

    async def complete(self, messages: list[Message], config: LlmConfig) -> str:
        return await self._chat(messages, config, schema=None)

    async def complete_structured(
        self, messages: list[Message], config: LlmConfig, model_cls: type[T]
    ) -> T:
        """Complete and decode the reply as JSON into *model_cls*."""
        raw = await self._chat(messages, config, schema=model_cls.model_json_schema())
        return parse_json_response(raw, model_cls)

    def resolve_model(self, config: LlmConfig) -> str:
        return config.model or self.default_model

    @abstractmethod
    async def _chat(
        self, messages: list[Message], config: LlmConfig, schema: Optional[dict]
    ) -> str: ...


# ── Ollama ───────────────────────────────────────────────────────────


class OllamaProvider(LlmProvider):
    """Local models served by Ollama; JSON replies are schema-constrained."""

    name = "ollama"

    def __init__(self, host: str = DEFAULT_OLLAMA_URL, default_model: str = "llama3.2"):
        super().__init__(default_model)
        self.client = ollama.AsyncClient(host=host)

    async def _chat(self, messages, config, schema):
        model = self.resolve_model(config)
        options = {}
        if config.temperature is not None:
            options["temperature"] = config.temperature
        if config.max_tokens is not None:
            options["num_predict"] = config.max_tokens
        if config.top_p is not None:
            options["top_p"] = config.top_p
        if config.stop_sequences:
            options["stop"] = config.stop_sequences

        kwargs = {}
        if schema is not None:
            kwargs["format"] = schema

        logger.debug("Ollama chat: model=%s, %d messages", model, len(messages))
        try:
            response = await self.client.chat(
                model=model,
                messages=[m.model_dump() for m in messages],
                options=options,
                **kwargs,
            )
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as exc:
            raise LlmError(f"Ollama request failed ({model}): {exc}") from exc

        content = response.message.content
        if not content:
            raise LlmError(f"Ollama returned an empty response ({model})")
        return content


# ── OpenAI ───────────────────────────────────────────────────────────


class OpenAIProvider(LlmProvider):
    """OpenAI chat completions (or any compatible endpoint via ``base_url``)."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        default_model: str = "gpt-4o",
        base_url: Optional[str] = None,
    ):
        if not api_key:
            raise ConfigError("OPENAI_API_KEY is required for the OpenAI provider")
        super().__init__(default_model)
        self.client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _chat(self, messages, config, schema):
        model = self.resolve_model(config)
        kwargs = {}
        if config.temperature is not None:
            kwargs["temperature"] = config.temperature
        if config.max_tokens is not None:
            kwargs["max_tokens"] = config.max_tokens
        if config.top_p is not None:
            kwargs["top_p"] = config.top_p
        if config.stop_sequences:
            kwargs["stop"] = config.stop_sequences
        if schema is not None:
            kwargs["response_format"] = {"type": "json_object"}

        logger.debug("OpenAI chat: model=%s, %d messages", model, len(messages))
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[m.model_dump() for m in messages],
                **kwargs,
            )
        except openai.OpenAIError as exc:
            raise LlmError(f"OpenAI request failed ({model}): {exc}") from exc

        if not response.choices or not response.choices[0].message.content:
            raise LlmError(f"OpenAI returned an empty response ({model})")
        return response.choices[0].message.content


# ── Anthropic ────────────────────────────────────────────────────────


class AnthropicProvider(LlmProvider):
    """Claude models via the Anthropic Messages API.

    System messages are lifted into the ``system`` parameter. There is no
    JSON mode, so structured replies rely on the prompt and fence stripping.
    """

    name = "anthropic"

    def __init__(self, api_key: Optional[str], default_model: str = "claude-sonnet-4-20250514"):
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY is required for the Anthropic provider")
        super().__init__(default_model)
        self.client = anthropic.AsyncAnthropic(api_key=api_key)

    async def _chat(self, messages, config, schema):
        model = self.resolve_model(config)
        kwargs = {"max_tokens": config.max_tokens or _ANTHROPIC_MAX_TOKENS}
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        if system:
            kwargs["system"] = system
        if config.temperature is not None:
            kwargs["temperature"] = config.temperature
        if config.top_p is not None:
            kwargs["top_p"] = config.top_p
        if config.stop_sequences:
            kwargs["stop_sequences"] = config.stop_sequences

        logger.debug("Anthropic chat: model=%s, %d messages", model, len(messages))
        try:
            response = await self.client.messages.create(
                model=model,
                messages=[m.model_dump() for m in messages if m.role != "system"],
                **kwargs,
            )
        except anthropic.AnthropicError as exc:
            raise LlmError(f"Anthropic request failed ({model}): {exc}") from exc

        text = "".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise LlmError(f"Anthropic returned an empty response ({model})")
        return text


# ── Factory ──────────────────────────────────────────────────────────


def build_provider(settings: Settings, name: Optional[LlmProviderName] = None) -> LlmProvider:
    """Provider *name* (default: ``settings.default_llm_provider``)."""
    name = name or settings.default_llm_provider
    if name == "openai":
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            default_model=settings.model_for("openai"),
            base_url=settings.openai_base_url,
        )
    if name == "anthropic":
        return AnthropicProvider(
            api_key=settings.anthropic_api_key,
            default_model=settings.model_for("anthropic"),
        )
    if name == "ollama":
        return OllamaProvider(
            host=settings.ollama_base_url,
            default_model=settings.model_for("ollama"),
        )
    raise ConfigError(f"Unknown LLM provider: {name}. Valid options: openai, anthropic, ollama")
