"""Run ledger: records execution attempts and their single status transition."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from agentloom.engine.state import OrchestratorState
from agentloom.errors import NotFoundError
from agentloom.model.run import AgentRun, RunStatus

logger = logging.getLogger(__name__)


class RunStateError(RuntimeError):
    """Raised when a run is asked to leave a terminal state."""


class RunLedger:
    """Stores runs keyed by run ID. Runs are never deleted."""

    DEFAULT_LIMIT = 50

    def __init__(self, state: OrchestratorState) -> None:
        self._state = state

    def start(self, genome_id: str, input_text: str) -> AgentRun:
        """Create a run in the running state and return a snapshot of it."""
        run = AgentRun(run_id=self._state.new_run_id(), genome_id=genome_id, input=input_text)
        with self._state.lock.write():
            self._state.runs[run.run_id] = run
        return run.copy()

    def finish(self, run_id: str, *, output: str = "", error: str | None = None) -> AgentRun:
        """Move a running run to completed (no error) or failed (with error).

        Raises:
            NotFoundError: If the run does not exist.
            RunStateError: If the run already reached a terminal status.
        """
        with self._state.lock.write():
            run = self._state.runs.get(run_id)
            if run is None:
                raise NotFoundError("run", run_id)
            if run.status.is_terminal:
                raise RunStateError(f"run {run_id} already {run.status.value}")
            if error is None:
                run.status = RunStatus.COMPLETED
                run.output = output
            else:
                run.status = RunStatus.FAILED
                run.error = error
            run.completed_at = datetime.now(UTC)
            snapshot = run.copy()
        return snapshot

    def set_fitness(
        self,
        run_id: str,
        fitness: float,
        feedback: str | None = None,
    ) -> AgentRun:
        """Score a run and propagate the score to its genome if it still exists.

        Both writes happen under one exclusive lock so readers never observe
        the run scored while its genome is not.

        Raises:
            NotFoundError: If the run does not exist.
        """
        with self._state.lock.write():
            run = self._state.runs.get(run_id)
            if run is None:
                raise NotFoundError("run", run_id)
            run.fitness = fitness
            if feedback:
                run.metadata["feedback"] = feedback
            genome = self._state.genomes.get(run.genome_id)
            if genome is not None:
                genome.fitness = fitness
            snapshot = run.copy()
        return snapshot

    def get(self, run_id: str) -> AgentRun:
        """Return a snapshot of a run.

        Raises:
            NotFoundError: If the run does not exist.
        """
        with self._state.lock.read():
            run = self._state.runs.get(run_id)
            snapshot = run.copy() if run is not None else None
        if snapshot is None:
            raise NotFoundError("run", run_id)
        return snapshot

    def list(self, genome_id: str | None = None, limit: int | None = None) -> list[AgentRun]:
        """Return runs in start order, optionally only those of one genome."""
        limit = limit or self.DEFAULT_LIMIT
        with self._state.lock.read():
            runs = [
                run.copy()
                for run in self._state.runs.values()
                if genome_id is None or run.genome_id == genome_id
            ]
        return runs[:limit]
