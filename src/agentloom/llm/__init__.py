"""LLM abstraction: the generate() interface and its provider backends."""

from agentloom.llm.client import GenerationRequest, LLMClient, LLMClientError
from agentloom.llm.factory import create_llm_client

__all__ = [
    "GenerationRequest",
    "LLMClient",
    "LLMClientError",
    "create_llm_client",
]
