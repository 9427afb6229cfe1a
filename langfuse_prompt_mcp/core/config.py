"""
Configuration Settings.

This module defines the server configuration using Pydantic's BaseSettings.
It loads everything from environment variables and an optional .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from langfuse_prompt_mcp.langfuse_api.models import DEFAULT_BASE_URL, LangfuseConfig


class Settings(BaseSettings):
    """
    Server settings model.

    All properties are bound from environment variables and the .env file.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Langfuse Connection
    # =====================================================================
    public_key: Optional[str] = Field(
        default=None,
        description="Langfuse public key",
        alias="LANGFUSE_PUBLIC_KEY",
    )
    secret_key: Optional[str] = Field(
        default=None,
        description="Langfuse secret key",
        alias="LANGFUSE_SECRET_KEY",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Langfuse host URL",
        alias="LANGFUSE_BASEURL",
    )
    request_timeout: int = Field(
        default=30000,
        ge=1,
        description="Per-request timeout in milliseconds",
        alias="LANGFUSE_REQUEST_TIMEOUT",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries for timeouts, network failures and 5xx answers",
        alias="LANGFUSE_MAX_RETRIES",
    )

    # =====================================================================
    # Caching
    # =====================================================================
    prompt_cache_ttl: float = Field(
        default=300.0,
        ge=0,
        description="TTL in seconds for single-prompt lookups",
        alias="LANGFUSE_PROMPT_CACHE_TTL",
    )
    list_cache_ttl: float = Field(
        default=60.0,
        ge=0,
        description="TTL in seconds for prompt listings",
        alias="LANGFUSE_LIST_CACHE_TTL",
    )

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="LANGFUSE_MCP_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log format (simple, detailed, json)",
        alias="LANGFUSE_MCP_LOG_FORMAT",
    )

    @property
    def langfuse(self) -> LangfuseConfig:
        """Get the immutable client configuration."""
        return LangfuseConfig(
            public_key=self.public_key,
            secret_key=self.secret_key,
            base_url=self.base_url,
            request_timeout=self.request_timeout,
            max_retries=self.max_retries,
        )
