"""
Pytest configuration and shared fixtures.
"""

import pytest

SETTINGS_ENV_VARS = (
    "SEMANTIC_SCHOLAR_API_KEY",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "OLLAMA_BASE_URL",
    "OLLAMA_MODEL",
    "LLM_PROVIDER",
    "LLM_MODEL",
    "API_RETRY_COUNT",
    "API_RETRY_WAIT",
    "API_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    """Keep the developer's shell credentials out of Settings()."""
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
