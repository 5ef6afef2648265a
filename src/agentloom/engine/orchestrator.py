"""Orchestrator facade wiring registry, ledger, executor, workflows and evolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from agentloom.config import OrchestratorConfig, get_config
from agentloom.engine.executor import ExecutionEngine, ParallelResult
from agentloom.engine.fitness import FitnessFunction
from agentloom.engine.ledger import RunLedger
from agentloom.engine.optimizer import EvolutionaryOptimizer, EvolutionResult
from agentloom.engine.registry import GenomeRegistry
from agentloom.engine.state import OrchestratorState
from agentloom.engine.workflow import WorkflowEngine, WorkflowResult
from agentloom.llm import LLMClient, create_llm_client
from agentloom.model.genome import AgentGenome
from agentloom.model.run import AgentRun
from agentloom.model.workflow import Workflow, WorkflowStep

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class Orchestrator:
    """Single entry point over one shared in-memory state.

    Example:
        >>> orchestrator = Orchestrator()  # LLM backend from environment
        >>> genome = orchestrator.register_agent("critic", "claude-sonnet-4-20250514")
        >>> run = orchestrator.run_agent(genome.id, "Review this diff")
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        llm_client: LLMClient | None = _UNSET,
        fitness_fn: FitnessFunction | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Settings. Loads from environment if not provided.
            llm_client: LLM backend. Built from config when omitted; pass
                None explicitly for dry-run mode.
            fitness_fn: Fitness function for evolve(). Defaults to the
                simulated score.
        """
        self.config = config or get_config()
        if llm_client is _UNSET:
            llm_client = create_llm_client(self.config)

        self.state = OrchestratorState()
        self.registry = GenomeRegistry(self.state)
        self.ledger = RunLedger(self.state)
        self.executor = ExecutionEngine(self.registry, self.ledger, llm_client, self.config)
        self.workflows = WorkflowEngine(self.state, self.executor)
        self.optimizer = EvolutionaryOptimizer(
            self.state,
            self.registry,
            self.ledger,
            fitness_fn=fitness_fn,
            seed=self.config.evolution_seed,
            max_population_size=self.config.max_population_size,
            max_generations=self.config.max_generations,
        )
        logger.info(
            "Orchestrator ready (dry_run=%s, max_parallel=%d)",
            self.executor.dry_run,
            self.config.max_parallel,
        )

    # Genomes

    def register_agent(
        self,
        name: str,
        model: str,
        provider: str = "",
        system_prompt: str = "",
        tools: Iterable[str] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AgentGenome:
        return self.registry.register(
            name,
            model,
            provider=provider,
            system_prompt=system_prompt,
            tools=tools,
            temperature=temperature,
            max_tokens=max_tokens,
            metadata=metadata,
        )

    def list_agents(self, limit: int | None = None) -> list[AgentGenome]:
        return self.registry.list(limit or self.config.list_limit)

    def get_agent(self, agent_id: str) -> AgentGenome:
        return self.registry.get(agent_id)

    def delete_agent(self, agent_id: str) -> None:
        self.registry.delete(agent_id)

    # Execution

    def run_agent(self, agent_id: str, input_text: str, timeout: float | None = None) -> AgentRun:
        return self.executor.run_agent(agent_id, input_text, timeout)

    def run_parallel(
        self, agent_ids: list[str], input_text: str, timeout: float | None = None
    ) -> list[ParallelResult]:
        return self.executor.run_parallel(agent_ids, input_text, timeout)

    def get_result(self, run_id: str) -> AgentRun:
        return self.ledger.get(run_id)

    def list_runs(self, genome_id: str | None = None, limit: int | None = None) -> list[AgentRun]:
        return self.ledger.list(genome_id, limit or self.config.list_limit)

    # Workflows

    def create_workflow(self, name: str, steps: Iterable[WorkflowStep]) -> Workflow:
        return self.workflows.create(name, steps)

    def list_workflows(self) -> list[Workflow]:
        return self.workflows.list()

    def get_workflow(self, workflow_id: str) -> Workflow:
        return self.workflows.get(workflow_id)

    def run_workflow(
        self, workflow_id: str, initial_input: str, timeout: float | None = None
    ) -> WorkflowResult:
        return self.workflows.run(workflow_id, initial_input, timeout)

    # Evolution

    def evaluate(
        self,
        run_id: str,
        fitness: float | None = None,
        correctness: bool | None = None,
        feedback: str | None = None,
    ) -> AgentRun:
        return self.optimizer.evaluate(run_id, fitness, correctness, feedback)

    def evolve(
        self,
        task: str,
        parent_ids: list[str],
        population_size: int | None = None,
        generations: int | None = None,
        mutation_rate: float | None = None,
    ) -> EvolutionResult:
        return self.optimizer.evolve(task, parent_ids, population_size, generations, mutation_rate)
