"""Tests for the Claude LLM client implementation."""

from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest
from pydantic import SecretStr

from agentloom.config import LLMProvider, OrchestratorConfig
from agentloom.llm.client import GenerationRequest, LLMClient, LLMClientError
from agentloom.llm.providers.claude import ClaudeClient, ClaudeClientError

ANTHROPIC = "agentloom.llm.providers.claude.anthropic.Anthropic"


@pytest.fixture
def mock_config() -> OrchestratorConfig:
    """Create a config with a test API key."""
    return OrchestratorConfig(
        _env_file=None,
        llm_provider=LLMProvider.CLAUDE,
        anthropic_api_key=SecretStr("test-api-key"),
        llm_timeout=30.0,
        llm_max_retries=1,
    )


@pytest.fixture
def request_() -> GenerationRequest:
    return GenerationRequest(
        model="claude-sonnet-4-20250514",
        system_prompt="You are a terse reviewer.",
        prompt="Review this diff",
        temperature=0.3,
        max_tokens=256,
        timeout=12.5,
    )


@pytest.fixture
def mock_anthropic_response() -> MagicMock:
    """Create a mock Anthropic API response with two text blocks."""
    response = MagicMock()
    response.content = [
        MagicMock(type="text", text="Looks good. "),
        MagicMock(type="tool_use", text="ignored"),
        MagicMock(type="text", text="Ship it."),
    ]
    return response


class TestClaudeClientInit:
    """Tests for ClaudeClient initialization."""

    def test_init_builds_sdk_client_from_config(self, mock_config: OrchestratorConfig) -> None:
        with patch(ANTHROPIC) as mock_anthropic:
            client = ClaudeClient(config=mock_config)
            assert client._config == mock_config
            mock_anthropic.assert_called_once_with(
                api_key="test-api-key", timeout=30.0, max_retries=1
            )

    def test_init_without_api_key_logs_warning(self) -> None:
        config = OrchestratorConfig(
            _env_file=None, llm_provider=LLMProvider.CLAUDE, anthropic_api_key=None
        )
        with patch("agentloom.llm.providers.claude.logger") as mock_logger:
            client = ClaudeClient(config=config)
            mock_logger.warning.assert_called_once()
            assert client._client is None

    def test_implements_llm_client_interface(self, mock_config: OrchestratorConfig) -> None:
        with patch(ANTHROPIC):
            client = ClaudeClient(config=mock_config)
        assert isinstance(client, LLMClient)
        assert client.provider_name == "claude"
        assert issubclass(ClaudeClientError, LLMClientError)


class TestClaudeClientGenerate:
    """Tests for ClaudeClient.generate()."""

    def test_generate_success(
        self,
        mock_config: OrchestratorConfig,
        request_: GenerationRequest,
        mock_anthropic_response: MagicMock,
    ) -> None:
        with patch(ANTHROPIC) as mock_anthropic:
            mock_client = MagicMock()
            mock_client.with_options.return_value = mock_client
            mock_client.messages.create.return_value = mock_anthropic_response
            mock_anthropic.return_value = mock_client

            output = ClaudeClient(config=mock_config).generate(request_)

            assert output == "Looks good. Ship it."
            kwargs = mock_client.messages.create.call_args.kwargs
            assert kwargs["model"] == "claude-sonnet-4-20250514"
            assert kwargs["system"] == "You are a terse reviewer."
            assert kwargs["messages"] == [{"role": "user", "content": "Review this diff"}]
            assert kwargs["temperature"] == 0.3
            assert kwargs["max_tokens"] == 256
            assert kwargs["timeout"] == 12.5
            mock_client.with_options.assert_called_once_with(timeout=12.5, max_retries=0)

    def test_generate_omits_empty_system_prompt(
        self, mock_config: OrchestratorConfig, mock_anthropic_response: MagicMock
    ) -> None:
        with patch(ANTHROPIC) as mock_anthropic:
            mock_client = MagicMock()
            mock_client.with_options.return_value = mock_client
            mock_client.messages.create.return_value = mock_anthropic_response
            mock_anthropic.return_value = mock_client

            ClaudeClient(config=mock_config).generate(GenerationRequest(model="m", prompt="hi"))

            kwargs = mock_client.messages.create.call_args.kwargs
            assert "system" not in kwargs
            assert kwargs["timeout"] == 30.0
            mock_client.with_options.assert_not_called()

    def test_generate_without_client_raises_error(self, request_: GenerationRequest) -> None:
        config = OrchestratorConfig(_env_file=None, anthropic_api_key=None)
        client = ClaudeClient(config=config)
        with pytest.raises(ClaudeClientError, match="not initialized"):
            client.generate(request_)

    def test_generate_empty_response_raises_error(
        self, mock_config: OrchestratorConfig, request_: GenerationRequest
    ) -> None:
        with patch(ANTHROPIC) as mock_anthropic:
            mock_client = MagicMock()
            mock_client.with_options.return_value = mock_client
            mock_client.messages.create.return_value = MagicMock(content=[])
            mock_anthropic.return_value = mock_client

            with pytest.raises(ClaudeClientError, match="Empty response"):
                ClaudeClient(config=mock_config).generate(request_)

    def test_generate_handles_timeout(
        self, mock_config: OrchestratorConfig, request_: GenerationRequest
    ) -> None:
        from anthropic import APITimeoutError

        with patch(ANTHROPIC) as mock_anthropic:
            mock_client = MagicMock()
            mock_client.with_options.return_value = mock_client
            mock_client.messages.create.side_effect = APITimeoutError(request=MagicMock())
            mock_anthropic.return_value = mock_client

            with pytest.raises(ClaudeClientError) as exc_info:
                ClaudeClient(config=mock_config).generate(request_)

            assert "timed out" in str(exc_info.value)
            assert isinstance(exc_info.value.__cause__, APITimeoutError)

    def test_generate_handles_rate_limit(
        self, mock_config: OrchestratorConfig, request_: GenerationRequest
    ) -> None:
        from anthropic import RateLimitError

        with patch(ANTHROPIC) as mock_anthropic:
            mock_client = MagicMock()
            mock_client.with_options.return_value = mock_client
            mock_client.messages.create.side_effect = RateLimitError(
                message="Rate limit exceeded",
                response=MagicMock(status_code=429),
                body=None,
            )
            mock_anthropic.return_value = mock_client

            with pytest.raises(ClaudeClientError) as exc_info:
                ClaudeClient(config=mock_config).generate(request_)

            assert "Rate limit" in str(exc_info.value)

    def test_generate_handles_api_error(
        self, mock_config: OrchestratorConfig, request_: GenerationRequest
    ) -> None:
        from anthropic import APIError

        with patch(ANTHROPIC) as mock_anthropic:
            mock_client = MagicMock()
            mock_client.with_options.return_value = mock_client
            mock_client.messages.create.side_effect = APIError(
                message="Internal server error",
                request=MagicMock(),
                body=None,
            )
            mock_anthropic.return_value = mock_client

            with pytest.raises(ClaudeClientError) as exc_info:
                ClaudeClient(config=mock_config).generate(request_)

            assert "API error" in str(exc_info.value)

    def test_timeout_request_is_sent_once(self, mock_config: OrchestratorConfig) -> None:
        attempts: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ReadTimeout("read timed out", request=request)

        client = ClaudeClient(config=mock_config)
        client._client = anthropic.Anthropic(
            api_key="test-api-key",
            max_retries=2,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )

        with pytest.raises(ClaudeClientError, match="timed out"):
            client.generate(
                GenerationRequest(model="claude-sonnet-4-20250514", prompt="x", timeout=0.3)
            )
        assert len(attempts) == 1
