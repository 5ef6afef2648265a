"""Evolutionary optimizer: scores runs and evolves new genomes from parents."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Any

from agentloom.engine.fitness import FitnessFunction
from agentloom.engine.ga import GAEngine, GAStats
from agentloom.engine.ledger import RunLedger
from agentloom.engine.registry import GenomeRegistry
from agentloom.engine.state import OrchestratorState
from agentloom.errors import NotFoundError, RequestValidationError
from agentloom.model.genome import AgentGenome
from agentloom.model.run import AgentRun

logger = logging.getLogger(__name__)

DEFAULT_POPULATION_SIZE = 10
DEFAULT_GENERATIONS = 5
DEFAULT_MUTATION_RATE = 0.1
SURVIVORS = 3


@dataclass
class EvolutionResult:
    """Genomes persisted by one evolve() call, best first."""

    best_agents: list[AgentGenome]
    best_fitness: float
    generations: int
    stats: list[GAStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "evolved": len(self.best_agents),
            "generations": self.generations,
            "best_agents": [genome.to_dict() for genome in self.best_agents],
            "best_fitness": self.best_fitness,
            "stats": [s.to_dict() for s in self.stats],
        }


class EvolutionaryOptimizer:
    """Scores runs and breeds new genomes with a genetic algorithm.

    Evolution works on snapshots. The shared lock is held only to copy the
    parents and to persist the survivors, never while the GA runs.

    Example:
        >>> optimizer = EvolutionaryOptimizer(state, registry, ledger, seed=7)
        >>> optimizer.evaluate(run_id, correctness=True).fitness
        1.0
        >>> result = optimizer.evolve("summarize papers", [genome_id])
        >>> [g.generation for g in result.best_agents]
    """

    def __init__(
        self,
        state: OrchestratorState,
        registry: GenomeRegistry,
        ledger: RunLedger,
        fitness_fn: FitnessFunction | None = None,
        seed: int | None = None,
        max_population_size: int = 100,
        max_generations: int = 100,
    ) -> None:
        """Initialize the optimizer.

        Args:
            state: Shared state (parent snapshots and ID issuing).
            registry: Where survivors are persisted.
            ledger: Where run fitness is recorded.
            fitness_fn: Scores candidates. Defaults to the simulated score.
            seed: Seed for the random source, for reproducible evolution.
                Each evolve call draws its own generator from it, so a call's
                outcome depends only on how many calls came before it.
            max_population_size: Largest population_size accepted.
            max_generations: Largest generations accepted.
        """
        self._state = state
        self._registry = registry
        self._ledger = ledger
        self._fitness_fn = fitness_fn
        self._rng = random.Random(seed)
        self._rng_lock = threading.Lock()
        self._max_population_size = max_population_size
        self._max_generations = max_generations

    def evaluate(
        self,
        run_id: str,
        fitness: float | None = None,
        correctness: bool | None = None,
        feedback: str | None = None,
    ) -> AgentRun:
        """Score a run and its source genome.

        An explicit nonzero fitness wins; otherwise correctness maps to 1.0
        and anything else to 0.5.

        Raises:
            RequestValidationError: If run_id is empty or fitness is outside [0, 1].
            NotFoundError: If the run does not exist.
        """
        if not run_id:
            raise RequestValidationError("run_id required")
        if fitness is not None and not 0.0 <= fitness <= 1.0:
            raise RequestValidationError(f"fitness must be within [0, 1], got {fitness}")

        if fitness:
            score = float(fitness)
        elif correctness:
            score = 1.0
        else:
            score = 0.5

        run = self._ledger.set_fitness(run_id, score, feedback=feedback)
        logger.info("Evaluated run %s: fitness=%.3f", run_id, score)
        return run

    def evolve(
        self,
        task: str,
        parent_ids: list[str],
        population_size: int | None = None,
        generations: int | None = None,
        mutation_rate: float | None = None,
    ) -> EvolutionResult:
        """Evolve new genomes from registered parents and persist the best three.

        Zero or None for the numeric arguments selects the default
        (10, 5 and 0.1). Unknown parent IDs are skipped.

        Raises:
            RequestValidationError: If parent_ids is empty or a parameter is
                out of range.
            NotFoundError: If none of the parent IDs is registered.
        """
        if not parent_ids:
            raise RequestValidationError("parent_ids required")
        population_size = population_size or DEFAULT_POPULATION_SIZE
        generations = generations or DEFAULT_GENERATIONS
        mutation_rate = mutation_rate or DEFAULT_MUTATION_RATE
        if not 2 <= population_size <= self._max_population_size:
            raise RequestValidationError(
                f"population_size must be within [2, {self._max_population_size}], "
                f"got {population_size}"
            )
        if not 1 <= generations <= self._max_generations:
            raise RequestValidationError(
                f"generations must be within [1, {self._max_generations}], got {generations}"
            )
        if not 0.0 <= mutation_rate <= 1.0:
            raise RequestValidationError(
                f"mutation_rate must be within [0, 1], got {mutation_rate}"
            )

        with self._state.lock.read():
            parents = [
                self._state.genomes[pid].copy() for pid in parent_ids if pid in self._state.genomes
            ]
        if not parents:
            raise NotFoundError("parent agents", ", ".join(parent_ids))

        with self._rng_lock:
            rng = random.Random(self._rng.getrandbits(64))

        engine = GAEngine(
            population_size=population_size,
            mutation_rate=mutation_rate,
            fitness_fn=self._fitness_fn,
            rng=rng,
            id_factory=self._state.new_genome_id,
        )
        outcome = engine.run(parents, generations, task=task, lineage=list(parent_ids))

        survivors = self._registry.add(outcome["population"][:SURVIVORS])
        logger.info(
            "Evolved %d genomes over %d generations (best fitness %.3f)",
            len(survivors),
            generations,
            outcome["best_fitness"],
        )
        return EvolutionResult(
            best_agents=survivors,
            best_fitness=outcome["best_fitness"],
            generations=generations,
            stats=list(outcome["stats_history"]),
        )
