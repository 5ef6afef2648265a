"""Request-level exceptions raised by the orchestrator.

Execution outcomes (an LLM call failing or timing out) are never raised;
they are recorded as failed runs. Everything in this module signals a bad
request that was rejected before any state was mutated.
"""

from __future__ import annotations

from typing import Any


class OrchestratorError(Exception):
    """Base class for orchestrator request errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class RequestValidationError(OrchestratorError):
    """Raised when a request is malformed or misses a required field."""


class NotFoundError(OrchestratorError):
    """Raised when a genome, run or workflow ID does not resolve."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}", context={kind: identifier})
        self.kind = kind
        self.identifier = identifier


class CapacityExceededError(OrchestratorError):
    """Raised when a fan-out request exceeds the configured parallelism cap."""

    def __init__(self, requested: int, limit: int) -> None:
        super().__init__(
            f"too many agents: {requested} requested (max {limit})",
            context={"requested": requested, "limit": limit},
        )
        self.requested = requested
        self.limit = limit


class UnknownToolError(OrchestratorError):
    """Raised when the dispatcher receives a tool name it does not serve."""


__all__ = [
    "CapacityExceededError",
    "NotFoundError",
    "OrchestratorError",
    "RequestValidationError",
    "UnknownToolError",
]
