"""Tests for configuration loading."""

import pytest
from pydantic import SecretStr, ValidationError

from agentloom.config import LLMProvider, OrchestratorConfig, get_config


class TestDefaults:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in (
            "LLM_PROVIDER",
            "MAX_PARALLEL",
            "DEFAULT_TIMEOUT",
            "EVOLUTION_SEED",
            "MAX_POPULATION_SIZE",
            "MAX_GENERATIONS",
        ):
            monkeypatch.delenv(var, raising=False)
        config = OrchestratorConfig(_env_file=None)
        assert config.llm_provider == LLMProvider.NONE
        assert config.max_parallel == 10
        assert config.default_timeout == 120.0
        assert config.default_temperature == 0.7
        assert config.default_max_tokens == 2048
        assert config.list_limit == 50
        assert config.evolution_seed is None
        assert config.max_population_size == 100
        assert config.max_generations == 100

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_PARALLEL", "4")
        monkeypatch.setenv("DEFAULT_TIMEOUT", "2.5")
        monkeypatch.setenv("EVOLUTION_SEED", "99")
        config = OrchestratorConfig(_env_file=None)
        assert config.max_parallel == 4
        assert config.default_timeout == 2.5
        assert config.evolution_seed == 99

    def test_rejects_out_of_range_values(self) -> None:
        with pytest.raises(ValidationError):
            OrchestratorConfig(_env_file=None, max_parallel=0)
        with pytest.raises(ValidationError):
            OrchestratorConfig(_env_file=None, default_timeout=0)


class TestProvider:
    @pytest.mark.parametrize("raw", ["CLAUDE", "Claude", "claude"])
    def test_provider_is_case_insensitive(self, raw: str) -> None:
        config = OrchestratorConfig(_env_file=None, llm_provider=raw)
        assert config.llm_provider == LLMProvider.CLAUDE

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OrchestratorConfig(_env_file=None, llm_provider="palm")

    def test_get_api_key_follows_provider(self) -> None:
        config = OrchestratorConfig(
            _env_file=None,
            llm_provider=LLMProvider.OPENAI,
            anthropic_api_key=SecretStr("anthropic"),
            openai_api_key=SecretStr("openai"),
        )
        assert config.get_api_key() == "openai"
        config.llm_provider = LLMProvider.CLAUDE
        assert config.get_api_key() == "anthropic"
        config.llm_provider = LLMProvider.OLLAMA
        assert config.get_api_key() is None


class TestValidateConfig:
    def test_claude_requires_key(self) -> None:
        config = OrchestratorConfig(
            _env_file=None, llm_provider=LLMProvider.CLAUDE, anthropic_api_key=None
        )
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            config.validate_config()

    def test_openai_accepts_base_url_instead_of_key(self) -> None:
        config = OrchestratorConfig(
            _env_file=None,
            llm_provider=LLMProvider.OPENAI,
            openai_api_key=None,
            openai_base_url="http://localhost:1234/v1",
        )
        config.validate_config()

    def test_openai_without_key_or_url(self) -> None:
        config = OrchestratorConfig(
            _env_file=None,
            llm_provider=LLMProvider.OPENAI,
            openai_api_key=None,
            openai_base_url=None,
        )
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            config.validate_config()

    def test_dry_run_needs_nothing(self) -> None:
        OrchestratorConfig(_env_file=None, llm_provider=LLMProvider.NONE).validate_config()


class TestSecrets:
    def test_repr_masks_keys(self) -> None:
        config = OrchestratorConfig(
            _env_file=None,
            anthropic_api_key=SecretStr("sk-ant-secret"),
            openai_api_key=None,
        )
        text = repr(config)
        assert "sk-ant-secret" not in text
        assert "anthropic_key=*****" in text
        assert "openai_key=not set" in text


class TestGetConfig:
    def test_get_config_is_cached(self) -> None:
        get_config.cache_clear()
        try:
            assert get_config() is get_config()
        finally:
            get_config.cache_clear()
