"""Genetic algorithm engine for evolving agent genomes."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from agentloom.engine.fitness import FitnessFunction, simulated_fitness
from agentloom.model.genome import (
    DEFAULT_FITNESS,
    MAX_TEMPERATURE,
    MIN_TEMPERATURE,
    AgentGenome,
)

TEMPERATURE_PRECISION = 4


def clamp_temperature(value: float) -> float:
    """Clamp to [0, 2] and round to 4 decimals."""
    return round(max(MIN_TEMPERATURE, min(MAX_TEMPERATURE, value)), TEMPERATURE_PRECISION)


@dataclass
class GAStats:
    """Statistics for a single generation."""

    generation: int
    best_fitness: float
    avg_fitness: float
    min_fitness: float
    population_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "generation": self.generation,
            "best_fitness": self.best_fitness,
            "avg_fitness": self.avg_fitness,
            "min_fitness": self.min_fitness,
            "population_size": self.population_size,
        }


@dataclass
class GAEngine:
    """Genetic algorithm engine for evolving agent genomes.

    Manages population lifecycle: seeding from parents, evaluation, elite
    selection, crossover and mutation. Tracks generation statistics and the
    best fitness seen. Operates on private copies and never touches the
    registry; the caller decides which genomes to persist.
    """

    # Configuration
    population_size: int = 10
    mutation_rate: float = 0.1  # Per-operator mutation probability
    crossover_rate: float = 0.3  # Chance an offspring is a crossover, else a mutant
    max_elites: int = 2  # Elites kept unchanged: min(max_elites, population / 2)
    prompt_window: int = 50  # Length of the prompt slice kept by prompt mutation

    # Fitness evaluator: callable(genome, task) -> float
    fitness_fn: FitnessFunction | None = None

    # Random source and ID issuer (name -> unique ID)
    rng: random.Random = field(default_factory=random.Random)
    id_factory: Callable[[str], str] | None = None

    # Population state
    population: list[AgentGenome] = field(default_factory=list)

    # Tracking
    generation: int = 0
    best_fitness: float = float("-inf")
    stats_history: list[GAStats] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.fitness_fn is None:
            self.fitness_fn = simulated_fitness(self.rng)

    def _new_id(self, genome: AgentGenome) -> str:
        if self.id_factory is None:
            msg = "id_factory must be set"
            raise ValueError(msg)
        return self.id_factory(genome.name)

    def initialize_population(
        self, parents: list[AgentGenome], lineage: list[str] | None = None
    ) -> None:
        """Seed the population with mutants of the parents.

        Slot i mutates parents[i] while parents last, then a randomly chosen
        parent. Every seed is generation 1 and records ``lineage`` (the
        requested parent IDs) as its parents.

        Args:
            parents: Seed genomes; at least one.
            lineage: Parent IDs to record. Defaults to the parents' IDs.
        """
        if not parents:
            msg = "At least one parent genome is required"
            raise ValueError(msg)

        lineage = list(lineage) if lineage is not None else [p.id for p in parents]
        self.population = []
        self.generation = 0
        self.best_fitness = float("-inf")
        self.stats_history = []

        for i in range(self.population_size):
            parent = parents[i] if i < len(parents) else self.rng.choice(parents)
            seed = self.mutate(parent)
            seed.id = self._new_id(seed)
            seed.generation = 1
            seed.parent_ids = list(lineage)
            seed.created_at = datetime.now(UTC)
            self.population.append(seed)

    def evaluate_population(self, task: str = "") -> list[float]:
        """Score every genome and store the score on the genome.

        Returns:
            list[float]: Scores in population order.
        """
        fitness_fn = self.fitness_fn
        if fitness_fn is None:
            msg = "fitness_fn must be set"
            raise ValueError(msg)
        scores = []
        for genome in self.population:
            genome.fitness = max(0.0, min(1.0, float(fitness_fn(genome, task))))
            scores.append(genome.fitness)
        if scores:
            self.best_fitness = max(self.best_fitness, max(scores))
        return scores

    def ranked(self) -> list[AgentGenome]:
        """Population sorted by fitness, descending.

        The sort is stable: genomes with equal fitness keep their
        population order.
        """
        return sorted(self.population, key=lambda g: g.fitness, reverse=True)

    def elite_count(self) -> int:
        return min(self.max_elites, len(self.population) // 2)

    def select(self) -> list[AgentGenome]:
        """Select the elites that survive unchanged into the next generation."""
        return self.ranked()[: self.elite_count()]

    def crossover(self, parent1: AgentGenome, parent2: AgentGenome) -> AgentGenome:
        """Combine two genomes into one child.

        - prompt: with 50% probability (both prompts non-empty), the first
          half of parent1's prompt followed by the second half of parent2's
        - tools: all of parent1's, plus each of parent2's with 50% probability
        - temperature: the average of both parents
        - fitness: reset to the default; ID cleared

        Args:
            parent1: Genome the child is copied from.
            parent2: Genome contributing prompt tail and optional tools.

        Returns:
            AgentGenome: Offspring genome.
        """
        child = parent1.copy()
        child.id = ""
        child.fitness = DEFAULT_FITNESS

        prompt1, prompt2 = parent1.system_prompt, parent2.system_prompt
        if self.rng.random() < 0.5 and prompt1 and prompt2:
            child.system_prompt = prompt1[: len(prompt1) // 2] + prompt2[len(prompt2) // 2 :]

        tools = list(parent1.tools)
        for tool in parent2.tools:
            if self.rng.random() < 0.5 and tool not in tools:
                tools.append(tool)
        child.tools = tools

        if parent1.temperature is not None or parent2.temperature is not None:
            average = (parent1.effective_temperature() + parent2.effective_temperature()) / 2
            child.temperature = clamp_temperature(average)

        return child

    def mutate(self, genome: AgentGenome) -> AgentGenome:
        """Apply random mutations to a copy of a genome.

        Each operator fires independently with probability mutation_rate:
        - temperature: shifted by uniform(-0.1, 0.1), clamped to [0, 2]
        - prompt: longer than prompt_window characters, replaced by a random
          window of that length
        - tools: drop a random tool (half the time, when any exist), else
          add a synthesized ``tool_<n>`` name

        Args:
            genome: Genome to mutate. Left untouched.

        Returns:
            AgentGenome: Mutated copy with its ID cleared.
        """
        mutated = genome.copy()
        mutated.id = ""

        if self.rng.random() < self.mutation_rate:
            delta = self.rng.uniform(-0.1, 0.1)
            mutated.temperature = clamp_temperature(genome.effective_temperature() + delta)

        prompt = genome.system_prompt
        if self.rng.random() < self.mutation_rate and len(prompt) > self.prompt_window:
            start = self.rng.randint(0, len(prompt) - self.prompt_window)
            mutated.system_prompt = prompt[start : start + self.prompt_window]

        if self.rng.random() < self.mutation_rate:
            if mutated.tools and self.rng.random() < 0.5:
                del mutated.tools[self.rng.randrange(len(mutated.tools))]
            else:
                tool = f"tool_{self.rng.randrange(100)}"
                if tool not in mutated.tools:
                    mutated.tools.append(tool)

        return mutated

    def run_generation(self, task: str = "") -> GAStats:
        """Execute one generation: evaluate, keep elites, breed the rest.

        Offspring pick two elites at random; with crossover_rate probability
        they are crossed, otherwise the first is mutated. Offspring belong to
        generation ``self.generation + 1`` and record both sources as parents.

        Returns:
            GAStats: Statistics for the evaluated population.
        """
        scores = self.evaluate_population(task)
        stats = GAStats(
            generation=self.generation,
            best_fitness=max(scores),
            avg_fitness=sum(scores) / len(scores),
            min_fitness=min(scores),
            population_size=len(self.population),
        )
        self.stats_history.append(stats)

        elites = self.select()
        if not elites:
            msg = "Population too small to select elites"
            raise ValueError(msg)

        offspring: list[AgentGenome] = []
        while len(elites) + len(offspring) < self.population_size:
            parent1 = self.rng.choice(elites)
            parent2 = self.rng.choice(elites)

            if self.rng.random() < self.crossover_rate:
                child = self.crossover(parent1, parent2)
            else:
                child = self.mutate(parent1)

            child.id = self._new_id(child)
            child.generation = self.generation + 1
            child.parent_ids = list(dict.fromkeys([parent1.id, parent2.id]))
            child.created_at = datetime.now(UTC)
            offspring.append(child)

        self.population = elites + offspring
        self.generation += 1
        return stats

    def run(
        self,
        parents: list[AgentGenome],
        generations: int,
        task: str = "",
        lineage: list[str] | None = None,
    ) -> dict[str, Any]:
        """Seed from parents and run the GA for several generations.

        Args:
            parents: Seed genomes.
            generations: Number of generations to run.
            task: Task description handed to the fitness function.
            lineage: Parent IDs recorded on the seed population.

        Returns:
            dict: ranked population, best_fitness and stats_history.
        """
        self.initialize_population(parents, lineage)
        for _ in range(generations):
            self.run_generation(task)

        return {
            "population": self.ranked(),
            "best_fitness": self.best_fitness,
            "generations_run": generations,
            "stats_history": self.stats_history,
        }
