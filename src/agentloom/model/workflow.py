"""Workflow and WorkflowStep dataclasses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

INITIAL_INPUT_KEY = "_initial"


@dataclass(frozen=True)
class WorkflowStep:
    """A single step: which genome to run and where its placeholders come from.

    ``inputs`` is frozen into a read-only copy.
    """

    step_id: str
    agent_id: str
    parallel: bool = False  # run together with the next step
    inputs: Mapping[str, str] = field(default_factory=dict)  # placeholder -> source step_id

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", MappingProxyType(dict(self.inputs)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "agent_id": self.agent_id,
            "parallel": self.parallel,
            "inputs": dict(self.inputs),
        }


@dataclass(frozen=True)
class Workflow:
    """Ordered chain of genome runs with output-to-input data passing."""

    id: str
    name: str
    steps: tuple[WorkflowStep, ...]
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def groups(self) -> list[list[WorkflowStep]]:
        """Split steps into execution groups.

        A step flagged parallel joins the group of the step after it, so
        each group ends at the first step whose flag is unset (or at the end
        of the list).
        """
        groups: list[list[WorkflowStep]] = []
        current: list[WorkflowStep] = []
        for step in self.steps:
            current.append(step)
            if not step.parallel:
                groups.append(current)
                current = []
        if current:
            groups.append(current)
        return groups

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "steps": [step.to_dict() for step in self.steps],
            "created_at": self.created_at.isoformat(),
        }
