"""LLM provider implementations."""

from agentloom.llm.providers.claude import ClaudeClient, ClaudeClientError
from agentloom.llm.providers.ollama import OllamaClient, OllamaClientError
from agentloom.llm.providers.openai import OpenAIClient, OpenAIClientError

__all__ = [
    "ClaudeClient",
    "ClaudeClientError",
    "OllamaClient",
    "OllamaClientError",
    "OpenAIClient",
    "OpenAIClientError",
]
