"""Ollama local LLM client implementation.

Talks to Ollama's REST API over httpx, enabling offline model execution.
"""

import logging
from typing import Any

import httpx

from agentloom.config import OrchestratorConfig, get_config
from agentloom.llm.client import GenerationRequest, LLMClient, LLMClientError

logger = logging.getLogger(__name__)


class OllamaClientError(LLMClientError):
    """Exception raised when Ollama API calls fail."""

    pass


class OllamaClient(LLMClient):
    """LLM client for local Ollama models.

    Example:
        >>> client = OllamaClient()
        >>> client.generate(GenerationRequest(model="llama3", prompt="Hello"))
    """

    provider_name = "ollama"

    def __init__(self, config: OrchestratorConfig | None = None) -> None:
        """Initialize the Ollama client.

        Args:
            config: Optional config. If not provided, loads from environment.
        """
        self._config = config or get_config()
        self._host = self._config.ollama_host.rstrip("/")

    def generate(self, request: GenerationRequest) -> str:
        """Generate a completion via /api/generate.

        Raises:
            OllamaClientError: If the call fails (connection, timeout, etc.).
        """
        timeout = request.timeout or self._config.llm_timeout
        payload: dict[str, Any] = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt

        try:
            logger.debug("Querying Ollama model %s at %s", request.model, self._host)
            with httpx.Client(timeout=timeout) as client:
                response = client.post(f"{self._host}/api/generate", json=payload)
                response.raise_for_status()
            data = response.json()
        except httpx.ConnectError as e:
            logger.error("Failed to connect to Ollama at %s: %s", self._host, str(e))
            raise OllamaClientError(
                f"Cannot connect to Ollama at {self._host}. "
                "Ensure Ollama is running (ollama serve)."
            ) from e
        except httpx.TimeoutException as e:
            logger.error("Ollama request timed out after %s seconds", timeout)
            raise OllamaClientError(f"Request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error("Ollama HTTP error: %s", e.response.status_code)
            raise OllamaClientError(f"HTTP error: {e.response.status_code}") from e
        except Exception as e:
            logger.error("Unexpected error querying Ollama: %s", str(e))
            raise OllamaClientError(f"Unexpected error: {e}") from e

        text = data.get("response", "")
        if not text:
            raise OllamaClientError("Empty response from Ollama API")
        return text
