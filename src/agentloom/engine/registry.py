"""Genome registry: CRUD over the shared genome arena."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from agentloom.engine.state import OrchestratorState
from agentloom.errors import NotFoundError, RequestValidationError
from agentloom.model.genome import AgentGenome

logger = logging.getLogger(__name__)


class GenomeRegistry:
    """Stores agent genomes keyed by generated ID.

    All returned genomes are copies; callers can never mutate the stored
    records by accident.
    """

    DEFAULT_LIMIT = 50

    def __init__(self, state: OrchestratorState) -> None:
        self._state = state

    def register(
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
        """Register a new genome with fitness 0.5, generation 0 and no parents.

        Raises:
            RequestValidationError: If name or model is empty.
        """
        if not name or not name.strip():
            raise RequestValidationError("name and model required: missing name")
        if not model or not model.strip():
            raise RequestValidationError("name and model required: missing model")

        genome = AgentGenome(
            id=self._state.new_genome_id(name),
            name=name,
            model=model,
            provider=provider,
            system_prompt=system_prompt,
            tools=list(dict.fromkeys(tools or [])),
            temperature=temperature,
            max_tokens=max_tokens,
            metadata=dict(metadata or {}),
        )

        with self._state.lock.write():
            self._state.genomes[genome.id] = genome

        logger.info("Registered genome %s (model=%s)", genome.id, model)
        return genome.copy()

    def add(self, genomes: Iterable[AgentGenome]) -> list[AgentGenome]:
        """Persist already-built genomes (e.g. evolved offspring) in one write."""
        stored = [genome.copy() for genome in genomes]
        with self._state.lock.write():
            for genome in stored:
                self._state.genomes[genome.id] = genome
        return [genome.copy() for genome in stored]

    def list(self, limit: int | None = None) -> list[AgentGenome]:
        """Return a snapshot of at most ``limit`` genomes in registration order."""
        limit = limit or self.DEFAULT_LIMIT
        with self._state.lock.read():
            snapshot = [genome.copy() for genome in list(self._state.genomes.values())[:limit]]
        return snapshot

    def get(self, genome_id: str) -> AgentGenome:
        """Return the genome with ``genome_id``.

        Raises:
            NotFoundError: If no such genome is registered.
        """
        with self._state.lock.read():
            genome = self._state.genomes.get(genome_id)
            snapshot = genome.copy() if genome is not None else None
        if snapshot is None:
            raise NotFoundError("agent", genome_id)
        return snapshot

    def delete(self, genome_id: str) -> None:
        """Remove a genome. Runs and workflows that reference it are kept.

        Raises:
            NotFoundError: If no such genome is registered.
        """
        with self._state.lock.write():
            if genome_id not in self._state.genomes:
                raise NotFoundError("agent", genome_id)
            del self._state.genomes[genome_id]
        logger.info("Deleted genome %s", genome_id)
