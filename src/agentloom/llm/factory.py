"""Build the configured LLM client."""

from __future__ import annotations

import logging

from agentloom.config import LLMProvider, OrchestratorConfig, get_config
from agentloom.llm.client import LLMClient
from agentloom.llm.providers import ClaudeClient, OllamaClient, OpenAIClient

logger = logging.getLogger(__name__)


def create_llm_client(config: OrchestratorConfig | None = None) -> LLMClient | None:
    """Create an LLM client for the configured provider.

    Args:
        config: Configuration to read the provider from. Loads from the
            environment if not provided.

    Returns:
        A client for the provider, or None for LLMProvider.NONE, which puts
        the execution engine in dry-run mode.
    """
    config = config or get_config()
    provider = config.llm_provider

    if provider == LLMProvider.NONE:
        logger.info("No LLM provider configured; agents will run in dry-run mode")
        return None
    elif provider == LLMProvider.CLAUDE:
        return ClaudeClient(config)
    elif provider == LLMProvider.OPENAI:
        return OpenAIClient(config)
    elif provider == LLMProvider.OLLAMA:
        return OllamaClient(config)
    else:
        raise ValueError(f"Unknown provider: {provider}")
