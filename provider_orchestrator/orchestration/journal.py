"""Attempt journal - per-request collection of attempt records.

One AttemptJournal exists per orchestration call. It stamps records with
the call's correlation id, logs them, forwards them to the attempt sinks
and answers "what was the last thing that happened to backend X" when a
strategy builds its aggregate failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from provider_orchestrator.backends.base import Backend
from provider_orchestrator.core.logging import get_logger
from provider_orchestrator.models.attempts import AttemptOutcome, AttemptRecord
from provider_orchestrator.observability.metrics import AttemptSink


logger = get_logger(__name__)


def utcnow() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class AttemptJournal:
    """Collects the closed attempts of one orchestration call.

    Attributes:
        correlation_id: Id shared by every record of the call.
        strategy: Strategy name, carried into log lines.
    """

    def __init__(
        self,
        correlation_id: str,
        strategy: str,
        sinks: Sequence[AttemptSink] = (),
    ) -> None:
        self.correlation_id = correlation_id
        self.strategy = strategy
        self._sinks = tuple(sinks)
        self._records: list[AttemptRecord] = []

    @property
    def records(self) -> tuple[AttemptRecord, ...]:
        """Get every record closed so far, in closing order."""
        return tuple(self._records)

    def close(
        self,
        backend: Backend,
        attempt_number: int,
        started_at: datetime,
        outcome: AttemptOutcome,
        *,
        model_id: str | None = None,
        content: str | None = None,
        error: BaseException | None = None,
    ) -> AttemptRecord:
        """Close an attempt: build its record, log it and notify sinks.

        Args:
            backend: Backend that was invoked.
            attempt_number: 1-based attempt index for the backend.
            started_at: When the attempt started.
            outcome: Terminal state.
            model_id: Model used. Defaults to the backend's current model.
            content: Returned text on success.
            error: Exception on failure or timeout.

        Returns:
            The immutable record.
        """
        record = AttemptRecord(
            backend_name=backend.name,
            model_id=model_id if model_id is not None else backend.model_id,
            correlation_id=self.correlation_id,
            attempt_number=attempt_number,
            started_at=started_at,
            ended_at=utcnow(),
            outcome=outcome,
            content=content,
            error=error,
        )
        self._records.append(record)

        log = logger.info if record.succeeded else logger.warning
        log(
            "attempt_closed",
            strategy=self.strategy,
            backend=record.backend_name,
            model=record.model_id,
            attempt=record.attempt_number,
            outcome=record.outcome.value,
            duration_ms=round(record.duration_ms, 1),
            reason=record.reason or None,
        )

        for sink in self._sinks:
            try:
                sink.record(record)
            except Exception as exc:  # noqa: BLE001 - sinks never affect outcomes
                logger.warning(
                    "attempt_sink_failed",
                    sink=type(sink).__name__,
                    error=str(exc),
                )
        return record

    def terminal_failures(self, backend_names: Sequence[str]) -> list[AttemptRecord]:
        """Get the last record of each named backend, in the given order.

        Args:
            backend_names: Backends in the order they were tried.

        Returns:
            One record per backend that has any record.
        """
        records = (self.last_for(name) for name in backend_names)
        return [record for record in records if record is not None]

    def last_for(self, backend_name: str) -> AttemptRecord | None:
        """Get the most recent record of one backend.

        Args:
            backend_name: Backend name.

        Returns:
            The last record, or None if the backend has none.
        """
        for record in reversed(self._records):
            if record.backend_name == backend_name:
                return record
        return None
