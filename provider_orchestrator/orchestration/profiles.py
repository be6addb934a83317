"""Performance profiles - named timeout tables per backend kind.

A PerformanceProfile is resolved from the user's performance mode plus
optional per-kind overrides. Resolution is pure: the same inputs always
produce an equal profile, so re-applying unchanged settings never drifts.

Modes:
- fast: Short deadlines, fail over quickly
- balanced: Default
- thorough: Long deadlines for large prompts and local models
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from provider_orchestrator.core.constants import (
    KIND_DEFAULT,
    PERFORMANCE_MODE_ALIASES,
    PERFORMANCE_TIMEOUTS_MS,
)
from provider_orchestrator.core.exceptions import ConfigurationError


class PerformanceMode(str, Enum):
    """Known performance modes."""

    FAST = "fast"
    BALANCED = "balanced"
    THOROUGH = "thorough"

    @classmethod
    def parse(cls, name: str | PerformanceMode | None) -> PerformanceMode:
        """Map a mode name to a PerformanceMode.

        Matching is case-insensitive, accepts the legacy "quality" alias,
        and falls back to BALANCED for unknown or missing names.

        Args:
            name: Mode name from settings.

        Returns:
            Resolved PerformanceMode.
        """
        if isinstance(name, PerformanceMode):
            return name
        if not name:
            return cls.BALANCED
        normalized = name.strip().lower()
        normalized = PERFORMANCE_MODE_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return cls.BALANCED


class PerformanceProfile(BaseModel):
    """Concrete timeout table for one performance mode.

    Attributes:
        mode: Mode the table was resolved from.
        timeouts_by_kind: Timeout in milliseconds per backend kind. Always
            contains a "default" entry used for unknown kinds.
    """

    model_config = ConfigDict(frozen=True)

    mode: PerformanceMode
    timeouts_by_kind: dict[str, int] = Field(default_factory=dict)

    def timeout_for(self, kind: str) -> int:
        """Get the timeout for a backend kind.

        Args:
            kind: Backend kind (e.g., "gemini").

        Returns:
            Timeout in milliseconds, the default entry for unknown kinds.
        """
        return self.timeouts_by_kind.get(
            kind.lower(), self.timeouts_by_kind[KIND_DEFAULT]
        )


class PerformanceProfileResolver:
    """Resolves mode names and overrides into PerformanceProfile values.

    Example:
        resolver = PerformanceProfileResolver()
        profile = resolver.resolve("fast", {"ollama": 90_000})
        profile.timeout_for("ollama")  # 90000
    """

    def __init__(
        self, tables: Mapping[str, Mapping[str, int]] | None = None
    ) -> None:
        """Initialize with timeout tables.

        Args:
            tables: Mode name -> kind -> timeout ms. Defaults to the built-in
                tables. Every mode must define a "default" kind.

        Raises:
            ConfigurationError: If a known mode is missing or lacks "default".
        """
        source = tables if tables is not None else PERFORMANCE_TIMEOUTS_MS
        self._tables: dict[PerformanceMode, dict[str, int]] = {}
        for mode in PerformanceMode:
            table = source.get(mode.value)
            if table is None or KIND_DEFAULT not in table:
                msg = f"Timeout table for mode '{mode.value}' must define '{KIND_DEFAULT}'"
                raise ConfigurationError(msg, setting="performance_mode")
            self._tables[mode] = {k.lower(): v for k, v in table.items()}

    def resolve(
        self,
        mode: str | PerformanceMode | None,
        custom_overrides: Mapping[str, int] | None = None,
    ) -> PerformanceProfile:
        """Resolve a profile.

        Args:
            mode: Mode name; unknown names resolve to balanced.
            custom_overrides: Kind -> timeout ms entries replacing the table's.

        Returns:
            New PerformanceProfile.

        Raises:
            ConfigurationError: If an override is not a positive number.
        """
        resolved_mode = PerformanceMode.parse(mode)
        timeouts = dict(self._tables[resolved_mode])
        for kind, timeout_ms in (custom_overrides or {}).items():
            if timeout_ms <= 0:
                msg = f"Custom timeout for '{kind}' must be positive, got {timeout_ms}"
                raise ConfigurationError(msg, setting="custom_timeouts")
            timeouts[kind.lower()] = int(timeout_ms)
        return PerformanceProfile(mode=resolved_mode, timeouts_by_kind=timeouts)
