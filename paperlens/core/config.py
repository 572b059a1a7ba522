"""Settings: YAML file overlaid by environment variables."""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from paperlens.core.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("paperlens.yaml")
DEFAULT_OLLAMA_URL = "http://localhost:11434"

LlmProviderName = Literal["openai", "anthropic", "ollama"]


def _env(field_name: str, var: str) -> AliasChoices:
    """Accept the environment variable name, then the field name (YAML, kwargs).

    The variable is listed first so it wins when both reach validation.
    """
    return AliasChoices(var, field_name)


# ── Settings Model ───────────────────────────────────────────────────


class Settings(BaseSettings):
    """Credentials, provider choice and HTTP behaviour for one invocation.

    Fields read their environment variable by upper-cased name
    (``OPENAI_API_KEY`` → ``openai_api_key``) unless an alias says otherwise.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    semantic_scholar_api_key: Optional[str] = None

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_base_url: Optional[str] = None

    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"

    ollama_base_url: str = DEFAULT_OLLAMA_URL
    ollama_model: str = "llama3.2"

    default_llm_provider: LlmProviderName = Field(
        default="openai", validation_alias=_env("default_llm_provider", "LLM_PROVIDER")
    )
    default_model: Optional[str] = Field(
        default=None, validation_alias=_env("default_model", "LLM_MODEL")
    )

    retry_count: int = Field(default=3, ge=1, validation_alias=_env("retry_count", "API_RETRY_COUNT"))
    retry_wait_time: float = Field(
        default=1.0, ge=0.0, validation_alias=_env("retry_wait_time", "API_RETRY_WAIT")
    )
    request_timeout: float = Field(
        default=30.0, gt=0.0, validation_alias=_env("request_timeout", "API_TIMEOUT")
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats keyword arguments, which carry the YAML file values
        return env_settings, dotenv_settings, init_settings

    def model_for(self, provider: LlmProviderName) -> str:
        """Model name to use for *provider*, honouring ``default_model``."""
        if self.default_model:
            return self.default_model
        if provider == "openai":
            return self.openai_model
        if provider == "anthropic":
            return self.anthropic_model
        return self.ollama_model


# ── Loading ──────────────────────────────────────────────────────────


def load_settings(path: str | Path | None = None) -> Settings:
    """Build Settings from an optional YAML file plus environment overrides.

    Without *path*, ``paperlens.yaml`` in the working directory is read if it
    exists. Environment variables (and ``.env``) always win over file values.
    """
    raw: dict = {}

    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if path is not None and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    if config_path.exists():
        with open(config_path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file must contain a mapping: {config_path}")
        raw.update(loaded)

    try:
        return Settings(**raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
