"""Claude (Anthropic) LLM client implementation."""

import logging

import anthropic
from anthropic import APIError, APITimeoutError, RateLimitError

from agentloom.config import OrchestratorConfig, get_config
from agentloom.llm.client import GenerationRequest, LLMClient, LLMClientError

logger = logging.getLogger(__name__)


class ClaudeClientError(LLMClientError):
    """Exception raised when Claude API calls fail."""

    pass


class ClaudeClient(LLMClient):
    """LLM client for Anthropic's Claude API.

    Uses the official anthropic SDK. The SDK's own transport retries are
    bounded by LLM_MAX_RETRIES and switched off for requests that carry a
    timeout; the orchestrator never retries a run.

    Example:
        >>> client = ClaudeClient()
        >>> client.generate(GenerationRequest(
        ...     model="claude-sonnet-4-20250514",
        ...     system_prompt="You are a terse reviewer.",
        ...     prompt="Review this diff",
        ... ))
    """

    provider_name = "claude"

    def __init__(self, config: OrchestratorConfig | None = None) -> None:
        """Initialize the Claude client.

        Args:
            config: Optional config. If not provided, loads from environment.
        """
        self._config = config or get_config()
        self._client: anthropic.Anthropic | None = None

        api_key = (
            self._config.anthropic_api_key.get_secret_value()
            if self._config.anthropic_api_key
            else None
        )
        if not api_key:
            logger.warning("No Anthropic API key configured. Client will fail on generate.")
            return

        self._client = anthropic.Anthropic(
            api_key=api_key,
            timeout=self._config.llm_timeout,
            max_retries=self._config.llm_max_retries,
        )

    def generate(self, request: GenerationRequest) -> str:
        """Generate a completion with Claude.

        Raises:
            ClaudeClientError: If the client is unconfigured or the call fails.
        """
        if not self._client:
            raise ClaudeClientError(
                "Claude client not initialized. Check that ANTHROPIC_API_KEY is set."
            )

        timeout = request.timeout or self._config.llm_timeout
        client = self._client
        if request.timeout is not None:
            # A deadline-bound call gets one attempt within the remaining time
            client = client.with_options(timeout=request.timeout, max_retries=0)
        try:
            logger.debug("Querying Claude model %s", request.model)
            kwargs = {}
            if request.system_prompt:
                kwargs["system"] = request.system_prompt
            response = client.messages.create(
                model=request.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                messages=[{"role": "user", "content": request.prompt}],
                timeout=timeout,
                **kwargs,
            )
        except APITimeoutError as e:
            logger.error("Claude API timeout after %s seconds", timeout)
            raise ClaudeClientError(f"API request timed out: {e}") from e
        except RateLimitError as e:
            logger.error("Claude API rate limit exceeded")
            raise ClaudeClientError(f"Rate limit exceeded: {e}") from e
        except APIError as e:
            logger.error("Claude API error: %s", e.message)
            raise ClaudeClientError(f"API error: {e.message}") from e
        except Exception as e:
            logger.error("Unexpected error querying Claude: %s", str(e))
            raise ClaudeClientError(f"Unexpected error: {e}") from e

        text = "".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise ClaudeClientError("Empty response from Claude API")
        return text
