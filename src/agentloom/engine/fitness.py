"""Fitness functions for the evolutionary optimizer.

Fitness functions score a candidate genome for a task description. These
are used by the GA engine for elite selection.

Each fitness function follows the signature:
    fitness_fn(genome: AgentGenome, task: str) -> float

Scores are expected in [0, 1]; the GA engine clamps anything outside.
"""

from __future__ import annotations

import random
from collections.abc import Callable

from agentloom.model.genome import AgentGenome

FitnessFunction = Callable[[AgentGenome, str], float]

SIMULATED_FLOOR = 0.3


def simulated_fitness(rng: random.Random | None = None) -> FitnessFunction:
    """Build the placeholder fitness function used when none is supplied.

    Each call draws uniformly from [0.3, 1.0). Neither the genome nor the
    task influence the score: it exercises selection, crossover and
    mutation without claiming anything about task performance.

    Args:
        rng: Random source. Defaults to the module-level generator.

    Returns:
        FitnessFunction returning a random score.
    """
    source = rng or random

    def fitness(genome: AgentGenome, task: str) -> float:
        return SIMULATED_FLOOR + source.random() * (1.0 - SIMULATED_FLOOR)

    return fitness


def stored_fitness(genome: AgentGenome, task: str) -> float:
    """Score a genome by the fitness it already carries.

    Useful after scoring runs with evaluate(): parents keep their evaluated
    fitness, mutants inherit their parent's and crossovers restart at 0.5.
    """
    return genome.fitness
