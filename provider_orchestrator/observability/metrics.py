"""Attempt sinks and aggregated orchestration metrics.

Every closed AttemptRecord is handed to each registered AttemptSink.
Sinks are observers: an exception raised by a sink is logged and dropped
by the caller and never changes an orchestration outcome.

OrchestrationMetrics is the default sink. It keeps only aggregated
counters; individual records are not retained.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Protocol, runtime_checkable

from provider_orchestrator.models.attempts import AttemptOutcome, AttemptRecord


@runtime_checkable
class AttemptSink(Protocol):
    """Receiver of closed attempt records."""

    def record(self, attempt: AttemptRecord) -> None:
        """Receive one closed attempt record."""
        ...


@dataclass
class BackendStats:
    """Aggregated attempt counters for one backend.

    Attributes:
        attempts: Total attempts, retries included.
        successes: Attempts that returned usable text.
        failures: Attempts that raised or returned nothing usable.
        timeouts: Attempts abandoned at their deadline.
        total_duration_ms: Sum of attempt durations.
    """

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    timeouts: int = 0
    total_duration_ms: float = 0.0

    @property
    def success_rate(self) -> float:
        """Calculate success rate (0.0 to 1.0)."""
        if self.attempts == 0:
            return 0.0
        return self.successes / self.attempts

    @property
    def average_duration_ms(self) -> float:
        """Calculate mean attempt duration in milliseconds."""
        if self.attempts == 0:
            return 0.0
        return self.total_duration_ms / self.attempts

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict including derived rates."""
        data = asdict(self)
        data["success_rate"] = round(self.success_rate, 4)
        data["average_duration_ms"] = round(self.average_duration_ms, 1)
        return data


class OrchestrationMetrics:
    """Aggregated counters across orchestration calls.

    Example:
        metrics = OrchestrationMetrics()
        orchestrator = Orchestrator(backends, sinks=[metrics])
        ...
        metrics.backend_stats("Groq").success_rate
    """

    def __init__(self) -> None:
        self._backends: dict[str, BackendStats] = {}
        self._requests_total = 0
        self._requests_succeeded = 0
        self._requests_failed = 0
        self._requests_by_strategy: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # AttemptSink
    # -------------------------------------------------------------------------

    def record(self, attempt: AttemptRecord) -> None:
        """Count one closed attempt."""
        stats = self._backends.setdefault(attempt.backend_name, BackendStats())
        stats.attempts += 1
        stats.total_duration_ms += attempt.duration_ms
        if attempt.outcome is AttemptOutcome.SUCCESS:
            stats.successes += 1
        elif attempt.outcome is AttemptOutcome.TIMED_OUT:
            stats.timeouts += 1
        else:
            stats.failures += 1

    # -------------------------------------------------------------------------
    # Request counters
    # -------------------------------------------------------------------------

    def record_request(self, strategy: str, succeeded: bool) -> None:
        """Count one finished orchestration call.

        Args:
            strategy: Strategy name that ran.
            succeeded: Whether the call produced a result.
        """
        self._requests_total += 1
        self._requests_by_strategy[strategy] = (
            self._requests_by_strategy.get(strategy, 0) + 1
        )
        if succeeded:
            self._requests_succeeded += 1
        else:
            self._requests_failed += 1

    @property
    def requests_total(self) -> int:
        """Get number of finished orchestration calls."""
        return self._requests_total

    @property
    def requests_succeeded(self) -> int:
        """Get number of calls that produced a result."""
        return self._requests_succeeded

    @property
    def requests_failed(self) -> int:
        """Get number of calls that raised."""
        return self._requests_failed

    def backend_stats(self, backend_name: str) -> BackendStats:
        """Get counters for one backend (zeros if never attempted)."""
        return self._backends.get(backend_name, BackendStats())

    def snapshot(self) -> dict[str, Any]:
        """Export every counter as plain data."""
        return {
            "requests": {
                "total": self._requests_total,
                "succeeded": self._requests_succeeded,
                "failed": self._requests_failed,
                "by_strategy": dict(self._requests_by_strategy),
            },
            "backends": {
                name: stats.to_dict() for name, stats in self._backends.items()
            },
        }

    def reset(self) -> None:
        """Zero every counter."""
        self._backends.clear()
        self._requests_total = 0
        self._requests_succeeded = 0
        self._requests_failed = 0
        self._requests_by_strategy.clear()
