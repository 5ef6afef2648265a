"""Shared fixtures for agentloom tests."""

from __future__ import annotations

import pytest
from fakes import FakeLLMClient

from agentloom.config import LLMProvider, OrchestratorConfig
from agentloom.engine.executor import ExecutionEngine
from agentloom.engine.ledger import RunLedger
from agentloom.engine.registry import GenomeRegistry
from agentloom.engine.state import OrchestratorState


@pytest.fixture
def config() -> OrchestratorConfig:
    """Dry-run config that ignores the environment's .env file."""
    return OrchestratorConfig(
        _env_file=None,
        llm_provider=LLMProvider.NONE,
        max_parallel=10,
        default_timeout=5.0,
        evolution_seed=1234,
    )


@pytest.fixture
def state() -> OrchestratorState:
    return OrchestratorState()


@pytest.fixture
def registry(state: OrchestratorState) -> GenomeRegistry:
    return GenomeRegistry(state)


@pytest.fixture
def ledger(state: OrchestratorState) -> RunLedger:
    return RunLedger(state)


@pytest.fixture
def fake_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def executor(
    registry: GenomeRegistry,
    ledger: RunLedger,
    fake_client: FakeLLMClient,
    config: OrchestratorConfig,
) -> ExecutionEngine:
    """Execution engine backed by the fake LLM client."""
    return ExecutionEngine(registry, ledger, llm_client=fake_client, config=config)


@pytest.fixture
def dry_executor(
    registry: GenomeRegistry, ledger: RunLedger, config: OrchestratorConfig
) -> ExecutionEngine:
    """Execution engine with no LLM client (dry run)."""
    return ExecutionEngine(registry, ledger, llm_client=None, config=config)
