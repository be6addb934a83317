"""Tests for performance profile resolution.

Tests verify:
- Known modes map to their timeout tables, unknown ones to balanced
- Custom overrides replace individual entries
- Resolution is pure and repeatable
"""

import pytest
from pydantic import ValidationError

from provider_orchestrator.core.constants import PERFORMANCE_TIMEOUTS_MS
from provider_orchestrator.core.exceptions import ConfigurationError
from provider_orchestrator.orchestration.profiles import (
    PerformanceMode,
    PerformanceProfile,
    PerformanceProfileResolver,
)


class TestPerformanceMode:
    """Test PerformanceMode.parse()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("fast", PerformanceMode.FAST),
            ("BALANCED", PerformanceMode.BALANCED),
            (" thorough ", PerformanceMode.THOROUGH),
            ("quality", PerformanceMode.THOROUGH),
            ("turbo", PerformanceMode.BALANCED),
            ("", PerformanceMode.BALANCED),
            (None, PerformanceMode.BALANCED),
            (PerformanceMode.FAST, PerformanceMode.FAST),
        ],
    )
    def test_parse(self, name, expected: PerformanceMode) -> None:
        assert PerformanceMode.parse(name) is expected


class TestResolve:
    """Test PerformanceProfileResolver.resolve()."""

    @pytest.mark.parametrize("mode", ["fast", "balanced", "thorough"])
    def test_known_modes_use_their_table(self, mode: str) -> None:
        profile = PerformanceProfileResolver().resolve(mode)
        assert profile.mode.value == mode
        assert profile.timeouts_by_kind == PERFORMANCE_TIMEOUTS_MS[mode]

    def test_unknown_mode_falls_back_to_balanced(self) -> None:
        resolver = PerformanceProfileResolver()
        assert resolver.resolve("ludicrous") == resolver.resolve("balanced")

    def test_local_backend_slower_than_hosted(self) -> None:
        """The heavy local kind gets a longer deadline than the fast API."""
        profile = PerformanceProfileResolver().resolve("fast")
        assert profile.timeout_for("ollama") > profile.timeout_for("groq")

    def test_custom_override_replaces_entry(self) -> None:
        profile = PerformanceProfileResolver().resolve("fast", {"Ollama": 90_000})
        assert profile.timeout_for("ollama") == 90_000
        assert profile.timeout_for("groq") == PERFORMANCE_TIMEOUTS_MS["fast"]["groq"]

    def test_override_can_add_new_kind(self) -> None:
        profile = PerformanceProfileResolver().resolve("balanced", {"mistral": 12_000})
        assert profile.timeout_for("mistral") == 12_000

    def test_non_positive_override_rejected(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            PerformanceProfileResolver().resolve("fast", {"groq": -5})
        assert exc_info.value.setting == "custom_timeouts"

    def test_resolution_is_repeatable(self) -> None:
        """Same inputs give equal profiles; inputs are not mutated."""
        overrides = {"gemini": 45_000}
        resolver = PerformanceProfileResolver()

        first = resolver.resolve("thorough", overrides)
        second = resolver.resolve("thorough", overrides)

        assert first == second
        assert overrides == {"gemini": 45_000}
        assert resolver.resolve("thorough").timeout_for("gemini") == (
            PERFORMANCE_TIMEOUTS_MS["thorough"]["gemini"]
        )


class TestPerformanceProfile:
    """Test PerformanceProfile lookups."""

    def test_unknown_kind_uses_default_entry(self) -> None:
        profile = PerformanceProfile(
            mode=PerformanceMode.FAST, timeouts_by_kind={"default": 1234}
        )
        assert profile.timeout_for("my-custom-backend") == 1234

    def test_profile_is_frozen(self) -> None:
        profile = PerformanceProfileResolver().resolve("fast")
        with pytest.raises(ValidationError):
            profile.mode = PerformanceMode.THOROUGH  # type: ignore[misc]


class TestCustomTables:
    """Test resolvers built from custom tables."""

    def test_table_without_default_rejected(self) -> None:
        tables = {
            "fast": {"default": 1},
            "balanced": {"groq": 2},
            "thorough": {"default": 3},
        }
        with pytest.raises(ConfigurationError, match="balanced"):
            PerformanceProfileResolver(tables)

    def test_custom_tables_used(self) -> None:
        tables = {
            "fast": {"default": 10},
            "balanced": {"default": 20},
            "thorough": {"default": 30},
        }
        assert PerformanceProfileResolver(tables).resolve("fast").timeout_for("x") == 10
