"""Tests for the genome registry."""

from __future__ import annotations

import pytest

from agentloom.engine.registry import GenomeRegistry
from agentloom.errors import NotFoundError, RequestValidationError


class TestRegister:
    """Tests for GenomeRegistry.register()."""

    def test_fresh_registration_defaults(self, registry: GenomeRegistry) -> None:
        genome = registry.register("critic", "llama3", provider="ollama")
        assert genome.id.startswith("agent_critic_")
        assert genome.fitness == 0.5
        assert genome.generation == 0
        assert genome.parent_ids == []
        assert genome.provider == "ollama"

    def test_tools_are_deduplicated_in_order(self, registry: GenomeRegistry) -> None:
        genome = registry.register("a", "m", tools=["search", "shell", "search"])
        assert genome.tools == ["search", "shell"]

    @pytest.mark.parametrize(("name", "model", "missing"), [("", "m", "name"), ("a", "", "model")])
    def test_requires_name_and_model(
        self, registry: GenomeRegistry, name: str, model: str, missing: str
    ) -> None:
        with pytest.raises(RequestValidationError, match=missing):
            registry.register(name, model)

    def test_returned_genome_is_a_copy(self, registry: GenomeRegistry) -> None:
        genome = registry.register("a", "m")
        genome.tools.append("injected")
        genome.fitness = 0.9
        stored = registry.get(genome.id)
        assert stored.tools == []
        assert stored.fitness == 0.5


class TestListGetDelete:
    """Tests for list, get and delete."""

    def test_list_in_registration_order_with_limit(self, registry: GenomeRegistry) -> None:
        ids = [registry.register(f"a{i}", "m").id for i in range(5)]
        assert [g.id for g in registry.list()] == ids
        assert [g.id for g in registry.list(limit=2)] == ids[:2]

    def test_list_default_limit(self, registry: GenomeRegistry) -> None:
        for i in range(60):
            registry.register(f"a{i}", "m")
        assert len(registry.list()) == 50

    def test_get_unknown_raises(self, registry: GenomeRegistry) -> None:
        with pytest.raises(NotFoundError, match="agent not found: nope"):
            registry.get("nope")

    def test_delete(self, registry: GenomeRegistry) -> None:
        genome = registry.register("a", "m")
        registry.delete(genome.id)
        with pytest.raises(NotFoundError):
            registry.get(genome.id)

    def test_delete_unknown_raises(self, registry: GenomeRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.delete("nope")
