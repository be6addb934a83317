"""Tests for BackendRegistry.

Tests verify:
- Registration order is preserved and names are unique
- Duplicate names replace in place (last write wins)
- Snapshots are independent of later mutation
- Profiles are applied only to backends that accept a timeout
"""

from provider_orchestrator.backends.base import BackendCapability
from provider_orchestrator.backends.registry import BackendRegistry
from provider_orchestrator.orchestration.profiles import PerformanceProfileResolver
from tests.unit.backends.fake_backend import FakeBackend


class TestOrdering:
    """Test registration order and uniqueness."""

    def test_list_in_registration_order(self) -> None:
        registry = BackendRegistry([FakeBackend("A"), FakeBackend("B")])
        registry.add(FakeBackend("C"))
        assert [b.name for b in registry.list()] == ["A", "B", "C"]
        assert registry.names() == ["A", "B", "C"]

    def test_duplicate_name_replaces_in_place(self) -> None:
        """Last write wins and the original position is kept."""
        first_b = FakeBackend("B", model_id="old")
        second_b = FakeBackend("B", model_id="new")
        registry = BackendRegistry([FakeBackend("A"), first_b, FakeBackend("C")])

        registry.add(second_b)

        assert registry.names() == ["A", "B", "C"]
        assert registry.get("B") is second_b
        assert len(registry) == 3

    def test_remove(self) -> None:
        registry = BackendRegistry([FakeBackend("A"), FakeBackend("B")])
        assert registry.remove("A") is True
        assert registry.remove("A") is False
        assert registry.names() == ["B"]
        assert "A" not in registry
        assert "B" in registry

    def test_get_missing_returns_none(self) -> None:
        assert BackendRegistry().get("nope") is None

    def test_clear(self) -> None:
        registry = BackendRegistry([FakeBackend("A")])
        registry.clear()
        assert len(registry) == 0
        assert registry.list() == ()


class TestSnapshot:
    """Test that list() returns a snapshot."""

    def test_snapshot_unaffected_by_mutation(self) -> None:
        registry = BackendRegistry([FakeBackend("A"), FakeBackend("B")])
        snapshot = registry.list()

        registry.remove("A")
        registry.add(FakeBackend("C"))

        assert [b.name for b in snapshot] == ["A", "B"]

    def test_iteration_uses_snapshot(self) -> None:
        registry = BackendRegistry([FakeBackend("A"), FakeBackend("B")])
        for backend in registry:
            registry.remove(backend.name)
        assert len(registry) == 0


class TestApplyProfile:
    """Test apply_profile()."""

    def test_sets_timeout_per_kind(self) -> None:
        groq = FakeBackend("Groq", kind="groq")
        ollama = FakeBackend("Ollama", kind="ollama")
        custom = FakeBackend("Custom")
        registry = BackendRegistry([groq, ollama, custom])
        profile = PerformanceProfileResolver().resolve("fast")

        applied = registry.apply_profile(profile)

        assert groq.current_timeout == profile.timeout_for("groq")
        assert ollama.current_timeout == profile.timeout_for("ollama")
        assert custom.current_timeout == profile.timeout_for("default")
        assert applied == {
            "Groq": groq.current_timeout,
            "Ollama": ollama.current_timeout,
            "Custom": custom.current_timeout,
        }

    def test_skips_backends_without_set_timeout(self) -> None:
        """Backends lacking the capability are skipped silently."""
        bare = FakeBackend("Bare", capabilities=frozenset({BackendCapability.SET_MODEL}))
        registry = BackendRegistry([bare])

        applied = registry.apply_profile(PerformanceProfileResolver().resolve("fast"))

        assert applied == {}
        assert bare.timeouts == []
