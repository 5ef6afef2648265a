"""OpenAI-compatible LLM client implementation.

Also serves local OpenAI-compatible servers (LM Studio, TGI) when
OPENAI_BASE_URL is set.
"""

import logging
from typing import Any

import openai
from openai import APIError, APITimeoutError, RateLimitError

from agentloom.config import OrchestratorConfig, get_config
from agentloom.llm.client import GenerationRequest, LLMClient, LLMClientError

logger = logging.getLogger(__name__)

# Local OpenAI-compatible servers accept any key but the SDK requires one.
_PLACEHOLDER_KEY = "not-needed"


class OpenAIClientError(LLMClientError):
    """Exception raised when OpenAI API calls fail."""

    pass


class OpenAIClient(LLMClient):
    """LLM client for the OpenAI chat completions API.

    Requests that carry a timeout are sent once, without SDK retries.

    Example:
        >>> client = OpenAIClient()
        >>> client.generate(GenerationRequest(model="gpt-4o", prompt="Hello"))
    """

    provider_name = "openai"

    def __init__(self, config: OrchestratorConfig | None = None) -> None:
        """Initialize the OpenAI client.

        Args:
            config: Optional config. If not provided, loads from environment.
        """
        self._config = config or get_config()
        self._client: openai.OpenAI | None = None

        api_key = (
            self._config.openai_api_key.get_secret_value()
            if self._config.openai_api_key
            else None
        )
        if not api_key and not self._config.openai_base_url:
            logger.warning("No OpenAI API key configured. Client will fail on generate.")
            return

        self._client = openai.OpenAI(
            api_key=api_key or _PLACEHOLDER_KEY,
            base_url=self._config.openai_base_url,
            timeout=self._config.llm_timeout,
            max_retries=self._config.llm_max_retries,
        )

    def generate(self, request: GenerationRequest) -> str:
        """Generate a chat completion.

        Raises:
            OpenAIClientError: If the client is unconfigured or the call fails.
        """
        if not self._client:
            raise OpenAIClientError(
                "OpenAI client not initialized. Check that OPENAI_API_KEY is set."
            )

        timeout = request.timeout or self._config.llm_timeout
        client = self._client
        if request.timeout is not None:
            # A deadline-bound call gets one attempt within the remaining time
            client = client.with_options(timeout=request.timeout, max_retries=0)
        try:
            logger.debug("Querying OpenAI model %s", request.model)
            response = client.chat.completions.create(
                model=request.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                messages=self._build_messages(request),
                timeout=timeout,
            )
        except APITimeoutError as e:
            logger.error("OpenAI API timeout after %s seconds", timeout)
            raise OpenAIClientError(f"API request timed out: {e}") from e
        except RateLimitError as e:
            logger.error("OpenAI API rate limit exceeded")
            raise OpenAIClientError(f"Rate limit exceeded: {e}") from e
        except APIError as e:
            logger.error("OpenAI API error: %s", e.message)
            raise OpenAIClientError(f"API error: {e.message}") from e
        except Exception as e:
            logger.error("Unexpected error querying OpenAI: %s", str(e))
            raise OpenAIClientError(f"Unexpected error: {e}") from e

        if not response.choices:
            raise OpenAIClientError("Empty response from OpenAI API")
        message = response.choices[0].message
        if not message or not message.content:
            raise OpenAIClientError("Empty message content from OpenAI API")
        return message.content

    def _build_messages(self, request: GenerationRequest) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})
        return messages
