"""Tests for the run ledger."""

from __future__ import annotations

import pytest

from agentloom.engine.ledger import RunLedger, RunStateError
from agentloom.engine.registry import GenomeRegistry
from agentloom.errors import NotFoundError
from agentloom.model.run import RunStatus


class TestRunLifecycle:
    """A run transitions exactly once from running to a terminal status."""

    def test_start_creates_running_run(self, ledger: RunLedger) -> None:
        run = ledger.start("agent_a_1", "hello")
        assert run.status is RunStatus.RUNNING
        assert run.completed_at is None
        assert ledger.get(run.run_id).input == "hello"

    def test_finish_completed(self, ledger: RunLedger) -> None:
        run = ledger.start("g", "hello")
        finished = ledger.finish(run.run_id, output="world")
        assert finished.status is RunStatus.COMPLETED
        assert finished.output == "world"
        assert finished.completed_at is not None

    def test_finish_failed(self, ledger: RunLedger) -> None:
        run = ledger.start("g", "hello")
        finished = ledger.finish(run.run_id, error="rate limited")
        assert finished.status is RunStatus.FAILED
        assert finished.error == "rate limited"

    def test_terminal_run_cannot_finish_again(self, ledger: RunLedger) -> None:
        run = ledger.start("g", "hello")
        ledger.finish(run.run_id, output="once")
        with pytest.raises(RunStateError):
            ledger.finish(run.run_id, error="twice")
        assert ledger.get(run.run_id).status is RunStatus.COMPLETED

    def test_get_unknown_raises(self, ledger: RunLedger) -> None:
        with pytest.raises(NotFoundError, match="run not found"):
            ledger.get("run_missing")


class TestSetFitness:
    """Tests for RunLedger.set_fitness()."""

    def test_updates_run_and_genome(self, ledger: RunLedger, registry: GenomeRegistry) -> None:
        genome = registry.register("a", "m")
        run = ledger.start(genome.id, "hi")
        scored = ledger.set_fitness(run.run_id, 0.9, feedback="concise")
        assert scored.fitness == 0.9
        assert scored.metadata["feedback"] == "concise"
        assert registry.get(genome.id).fitness == 0.9

    def test_dangling_genome_only_updates_run(
        self, ledger: RunLedger, registry: GenomeRegistry
    ) -> None:
        genome = registry.register("a", "m")
        run = ledger.start(genome.id, "hi")
        registry.delete(genome.id)
        assert ledger.set_fitness(run.run_id, 0.2).fitness == 0.2

    def test_unknown_run_raises(self, ledger: RunLedger) -> None:
        with pytest.raises(NotFoundError):
            ledger.set_fitness("run_missing", 0.5)


class TestList:
    """Tests for RunLedger.list()."""

    def test_lists_in_start_order_with_filter(self, ledger: RunLedger) -> None:
        r1 = ledger.start("g1", "a")
        r2 = ledger.start("g2", "b")
        r3 = ledger.start("g1", "c")
        assert [r.run_id for r in ledger.list()] == [r1.run_id, r2.run_id, r3.run_id]
        assert [r.run_id for r in ledger.list(genome_id="g1")] == [r1.run_id, r3.run_id]
        assert len(ledger.list(limit=1)) == 1
