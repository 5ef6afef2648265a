"""Configuration loading for the orchestrator and its LLM backend.

This module provides Pydantic-based configuration loading from environment
variables and .env files. API keys are secured by never being logged or
exposed in error messages.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class LLMProvider(StrEnum):
    """Supported LLM providers."""

    NONE = "none"
    CLAUDE = "claude"
    OPENAI = "openai"
    OLLAMA = "ollama"


class OrchestratorConfig(BaseSettings):
    """Configuration for the orchestrator and the LLM provider behind it.

    Loads settings from environment variables and .env file.
    API keys are stored as SecretStr to prevent accidental logging.

    Environment Variables:
        LLM_PROVIDER: Which LLM provider to use (none, claude, openai, ollama).
            "none" runs agents in dry-run mode with a placeholder output.
        ANTHROPIC_API_KEY: Claude API key (required if provider is claude)
        OPENAI_API_KEY: OpenAI API key (required if provider is openai)
        OPENAI_BASE_URL: Alternate OpenAI-compatible endpoint (LM Studio, TGI)
        OLLAMA_HOST: Ollama server URL (default: http://localhost:11434)
        LLM_TIMEOUT: Transport timeout for one request in seconds (default: 120.0)
        LLM_MAX_RETRIES: Transport-level retries inside the provider SDK (default: 2)
        MAX_PARALLEL: Maximum agents per parallel batch (default: 10)
        DEFAULT_TIMEOUT: Per-run deadline in seconds (default: 120.0)
        DEFAULT_TEMPERATURE: Temperature for genomes that set none (default: 0.7)
        DEFAULT_MAX_TOKENS: Token budget for genomes that set none (default: 2048)
        LIST_LIMIT: Default page size for list operations (default: 50)
        EVOLUTION_SEED: Optional seed for reproducible evolution
        MAX_POPULATION_SIZE: Largest population one evolve call may request (default: 100)
        MAX_GENERATIONS: Most generations one evolve call may request (default: 100)

    Example:
        >>> config = OrchestratorConfig()  # Loads from environment
        >>> config = OrchestratorConfig(_env_file=".env")  # Explicit .env file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider selection
    llm_provider: LLMProvider = Field(
        default=LLMProvider.NONE,
        description="Which LLM provider to use",
    )

    # API Keys (stored as SecretStr for security)
    anthropic_api_key: SecretStr | None = Field(default=None, description="Claude API key")
    openai_api_key: SecretStr | None = Field(default=None, description="OpenAI API key")
    openai_base_url: str | None = Field(
        default=None,
        description="OpenAI-compatible base URL (LM Studio, TGI)",
    )

    # Ollama settings (for local models)
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL",
    )

    # Transport settings
    llm_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Transport timeout for one LLM request in seconds",
    )
    llm_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Transport retries performed by the provider SDK",
    )

    # Execution settings
    max_parallel: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Maximum agents per parallel batch",
    )
    default_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Per-run deadline in seconds",
    )
    default_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for genomes that set none",
    )
    default_max_tokens: int = Field(
        default=2048,
        ge=1,
        le=200000,
        description="Token budget for genomes that set none",
    )
    list_limit: int = Field(
        default=50,
        ge=1,
        description="Default page size for list operations",
    )

    # Evolution settings
    evolution_seed: int | None = Field(
        default=None,
        description="Seed for the optimizer's random source",
    )
    max_population_size: int = Field(
        default=100,
        ge=2,
        description="Largest population one evolve call may request",
    )
    max_generations: int = Field(
        default=100,
        ge=1,
        description="Most generations one evolve call may request",
    )

    @field_validator("llm_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> LLMProvider:
        """Normalize provider string to enum."""
        if isinstance(v, str):
            return LLMProvider(v.lower())
        return v

    def get_api_key(self) -> str | None:
        """Get the API key for the current provider.

        Returns:
            The API key string, or None if not configured.
            Never logs the actual key value.
        """
        if self.llm_provider == LLMProvider.CLAUDE:
            return self.anthropic_api_key.get_secret_value() if self.anthropic_api_key else None
        elif self.llm_provider == LLMProvider.OPENAI:
            return self.openai_api_key.get_secret_value() if self.openai_api_key else None
        else:
            return None

    def validate_config(self) -> None:
        """Validate that required configuration is present.

        Raises:
            ValueError: If required API key is missing for the selected provider.
        """
        if self.llm_provider == LLMProvider.CLAUDE and not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY is required when LLM_PROVIDER is 'claude'")
        if (
            self.llm_provider == LLMProvider.OPENAI
            and not self.openai_api_key
            and not self.openai_base_url
        ):
            raise ValueError(
                "OPENAI_API_KEY or OPENAI_BASE_URL is required when LLM_PROVIDER is 'openai'"
            )

    def __repr__(self) -> str:
        """Safe representation that never exposes API keys."""
        return (
            f"OrchestratorConfig("
            f"provider={self.llm_provider.value}, "
            f"max_parallel={self.max_parallel}, "
            f"default_timeout={self.default_timeout}s, "
            f"llm_timeout={self.llm_timeout}s, "
            f"anthropic_key={'*****' if self.anthropic_api_key else 'not set'}, "
            f"openai_key={'*****' if self.openai_api_key else 'not set'}"
            f")"
        )


@lru_cache
def get_config() -> OrchestratorConfig:
    """Get cached configuration singleton.

    Loads configuration once and caches it for subsequent calls.
    To reload configuration, call get_config.cache_clear() first.

    Returns:
        OrchestratorConfig instance with settings from environment.
    """
    config = OrchestratorConfig()
    logger.info("Loaded orchestrator configuration: %s", config)
    return config
