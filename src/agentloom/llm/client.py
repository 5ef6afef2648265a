"""Abstract LLM client interface used by the execution engine.

The engine treats every backend the same way: one generate() call taking a
GenerationRequest and returning text, or raising LLMClientError.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class LLMClientError(Exception):
    """Base exception for LLM call failures (timeouts, rate limits, API errors)."""

    pass


class GenerationRequest(BaseModel):
    """Parameters for one generation call.

    Attributes:
        model: Model identifier understood by the backend.
        system_prompt: System message setting the agent's behavior.
        prompt: The user input to respond to.
        temperature: Response randomness (0.0 to 2.0).
        max_tokens: Maximum tokens in the response.
        timeout: Seconds left before the caller's deadline.
    """

    model: str = Field(description="Model identifier")
    system_prompt: str = Field(default="", description="System message for the LLM")
    prompt: str = Field(description="User prompt")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Response randomness")
    max_tokens: int = Field(default=2048, ge=1, description="Max response tokens")
    timeout: float | None = Field(default=None, gt=0, description="Seconds until deadline")


class LLMClient(ABC):
    """Abstract base class for LLM provider clients.

    Example:
        class EchoClient(LLMClient):
            def generate(self, request: GenerationRequest) -> str:
                return request.prompt
    """

    provider_name = "unknown"

    @abstractmethod
    def generate(self, request: GenerationRequest) -> str:
        """Generate text for the request.

        Args:
            request: Model, prompts and sampling parameters.

        Returns:
            The generated text.

        Raises:
            LLMClientError: If the call fails (timeout, rate limit, etc.).
        """
        raise NotImplementedError("Subclasses must implement generate()")
