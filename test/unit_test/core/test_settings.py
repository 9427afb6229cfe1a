from __future__ import annotations

import pytest

from langfuse_prompt_mcp.core.config import Settings

ENV_VARS = (
    "LANGFUSE_PUBLIC_KEY",
    "LANGFUSE_SECRET_KEY",
    "LANGFUSE_BASEURL",
    "LANGFUSE_REQUEST_TIMEOUT",
    "LANGFUSE_MAX_RETRIES",
    "LANGFUSE_PROMPT_CACHE_TTL",
    "LANGFUSE_LIST_CACHE_TTL",
    "LANGFUSE_MCP_LOG_LEVEL",
    "LANGFUSE_MCP_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.public_key is None
    assert settings.base_url == "https://cloud.langfuse.com"
    assert settings.request_timeout == 30000
    assert settings.max_retries == 3
    assert settings.prompt_cache_ttl == 300
    assert settings.list_cache_ttl == 60
    assert settings.log_level == "INFO"


def test_environment_binding(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-lf-1")
    monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-lf-1")
    monkeypatch.setenv("LANGFUSE_BASEURL", "http://localhost:3000")
    monkeypatch.setenv("LANGFUSE_REQUEST_TIMEOUT", "5000")
    monkeypatch.setenv("LANGFUSE_MAX_RETRIES", "0")

    config = Settings(_env_file=None).langfuse

    assert config.public_key == "pk-lf-1"
    assert config.secret_key == "sk-lf-1"
    assert config.base_url == "http://localhost:3000"
    assert config.request_timeout == 5000
    assert config.max_retries == 0


def test_env_file_is_read(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("LANGFUSE_PUBLIC_KEY=pk-file\nLANGFUSE_LIST_CACHE_TTL=5\n")
    settings = Settings(_env_file=env_file)
    assert settings.public_key == "pk-file"
    assert settings.list_cache_ttl == 5


def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LANGFUSE_MAX_RETRIES", "-1")
    with pytest.raises(ValueError):
        Settings(_env_file=None)
