"""AgentGenome dataclass: a versioned agent configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

DEFAULT_FITNESS = 0.5
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


@dataclass
class AgentGenome:
    """Configuration of one agent: model, prompt, tools and sampling parameters.

    Genomes are only mutated in place for their fitness score. Evolution
    always produces new genomes via copy().
    """

    # Identity
    id: str
    name: str
    model: str
    provider: str = ""

    # Behavior
    system_prompt: str = ""
    tools: list[str] = field(default_factory=list)
    temperature: float | None = None  # None means use DEFAULT_TEMPERATURE
    max_tokens: int | None = None  # None means use DEFAULT_MAX_TOKENS
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    # Evolution
    fitness: float = DEFAULT_FITNESS
    generation: int = 0
    parent_ids: list[str] = field(default_factory=list)

    def effective_temperature(self, default: float = DEFAULT_TEMPERATURE) -> float:
        """Temperature to sample with, falling back to the default when unset."""
        return default if self.temperature is None else self.temperature

    def effective_max_tokens(self, default: int = DEFAULT_MAX_TOKENS) -> int:
        """Token budget to request, falling back to the default when unset or zero."""
        return self.max_tokens or default

    def copy(self) -> AgentGenome:
        """Return an independent copy (containers are not shared)."""
        return replace(
            self,
            tools=list(self.tools),
            metadata=dict(self.metadata),
            parent_ids=list(self.parent_ids),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict."""
        return {
            "id": self.id,
            "name": self.name,
            "model": self.model,
            "provider": self.provider,
            "system_prompt": self.system_prompt,
            "tools": list(self.tools),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat(),
            "fitness": self.fitness,
            "generation": self.generation,
            "parent_ids": list(self.parent_ids),
        }
