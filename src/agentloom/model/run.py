"""AgentRun dataclass and its two-stage status machine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class RunStatus(StrEnum):
    """Status of a run: running, then exactly one terminal state."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.RUNNING


@dataclass
class AgentRun:
    """One execution attempt of a genome against an input.

    genome_id is a plain reference: deleting the genome later leaves it
    dangling rather than invalidating the run.
    """

    run_id: str
    genome_id: str
    input: str
    output: str = ""
    status: RunStatus = RunStatus.RUNNING
    fitness: float | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
    error: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> AgentRun:
        """Return an independent snapshot of this run."""
        return replace(self, metadata=dict(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict."""
        data: dict[str, Any] = {
            "run_id": self.run_id,
            "genome_id": self.genome_id,
            "input": self.input,
            "output": self.output,
            "status": self.status.value,
            "fitness": self.fitness,
            "started_at": self.started_at.isoformat(),
            "metadata": dict(self.metadata),
        }
        if self.completed_at is not None:
            data["completed_at"] = self.completed_at.isoformat()
        if self.error:
            data["error"] = self.error
        return data
