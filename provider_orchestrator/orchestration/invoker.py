"""Backend invoker - one guarded, optionally retried backend call.

Composition per backend:

    TimeoutGuard( RetryExecutor( attempt ) )      sequential / targeted
    TimeoutGuard( attempt )                        parallel race

where one attempt is a single backend.invoke() whose result is validated
(empty text is a failure) and journaled. The deadline covers the whole
retry loop. Once the deadline fires the call is "abandoned": no further
retry starts and a late settlement of the running attempt is not
journaled, so the TIMED_OUT record is terminal.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime

from opentelemetry.trace import Tracer

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.core.exceptions import (
    BackendInvocationError,
    EmptyResponseError,
    OrchestratorError,
    TimedOutError,
)
from provider_orchestrator.models.attempts import AttemptOutcome
from provider_orchestrator.models.results import OrchestrationResult
from provider_orchestrator.observability.tracing import (
    ATTR_ATTEMPTS,
    backend_span,
    get_tracer,
)
from provider_orchestrator.orchestration.journal import AttemptJournal, utcnow
from provider_orchestrator.resilience.retry import (
    RetryPolicy,
    SleepFunc,
    execute_with_retry,
)
from provider_orchestrator.resilience.timeout_guard import TimeoutGuard


@dataclass
class _CallState:
    """Mutable bookkeeping for one backend call."""

    attempt_number: int = 0
    started_at: datetime | None = None
    model_id: str | None = None
    last_error: BaseException | None = None
    abandoned: TimedOutError | None = None
    in_flight: bool = False


class BackendInvoker:
    """Runs backend calls under a deadline and an optional retry policy.

    Attributes:
        guard: TimeoutGuard shared by every call of one orchestrator.
    """

    def __init__(
        self,
        guard: TimeoutGuard | None = None,
        sleep: SleepFunc = asyncio.sleep,
        tracer: Tracer | None = None,
    ) -> None:
        """Initialize the invoker.

        Args:
            guard: Timeout guard. A new one is created if omitted.
            sleep: Async sleep used for retry backoff.
            tracer: OpenTelemetry tracer for backend.call spans.
        """
        self.guard = guard or TimeoutGuard()
        self._sleep = sleep
        self._tracer = tracer or get_tracer()

    async def call(
        self,
        backend: Backend,
        prompt: str,
        *,
        timeout_ms: float,
        journal: AttemptJournal,
        policy: RetryPolicy | None = None,
    ) -> OrchestrationResult:
        """Call one backend.

        Args:
            backend: Backend to invoke.
            prompt: Validated prompt.
            timeout_ms: Deadline for the whole call, retries included.
            journal: Journal receiving every attempt record.
            policy: Retry policy, or None for a single attempt.

        Returns:
            OrchestrationResult from the first usable response.

        Raises:
            TimedOutError: If the deadline expired.
            OrchestratorError: The terminal attempt's error otherwise.
        """
        state = _CallState()

        async def attempt_once() -> str:
            if state.abandoned is not None:
                raise state.abandoned
            state.attempt_number += 1
            state.started_at = utcnow()
            state.model_id = backend.model_id
            attempt_number = state.attempt_number

            state.in_flight = True
            try:
                text = await backend.invoke(prompt)
            except OrchestratorError as exc:
                self._close_failure(journal, backend, state, attempt_number, exc)
                raise
            except Exception as exc:
                error = BackendInvocationError.from_exception(backend.name, exc)
                self._close_failure(journal, backend, state, attempt_number, error)
                raise error from exc
            finally:
                state.in_flight = False

            if not isinstance(text, str) or not text.strip():
                error = EmptyResponseError(backend.name)
                self._close_failure(journal, backend, state, attempt_number, error)
                raise error

            if state.abandoned is None:
                journal.close(
                    backend,
                    attempt_number,
                    state.started_at,
                    AttemptOutcome.SUCCESS,
                    model_id=state.model_id,
                    content=text,
                )
            return text

        if policy is None:
            operation = attempt_once()
        else:
            bounded = policy.with_classifier(
                lambda exc: state.abandoned is None and policy.is_retryable(exc)
            )
            operation = execute_with_retry(attempt_once, bounded, sleep=self._sleep)

        call_started = utcnow()
        with backend_span(
            self._tracer,
            backend_name=backend.name,
            model_id=backend.model_id,
            strategy=journal.strategy,
            correlation_id=journal.correlation_id,
            timeout_ms=timeout_ms,
        ) as span:
            try:
                text = await self.guard.guard(
                    operation,
                    timeout_ms,
                    backend.name,
                    cancel_on_timeout=backend.supports(BackendCapability.CANCELLATION),
                )
            except TimedOutError as exc:
                if exc is not state.last_error:
                    state.abandoned = exc
                if exc is not state.last_error and (
                    state.in_flight or state.attempt_number == 0
                ):
                    # Deadline fired mid-attempt, or before the first one
                    # started. During a backoff sleep the last FAILURE stays
                    # terminal.
                    journal.close(
                        backend,
                        max(state.attempt_number, 1),
                        state.started_at or call_started,
                        AttemptOutcome.TIMED_OUT,
                        model_id=state.model_id,
                        error=exc,
                    )
                raise
            span.set_attribute(ATTR_ATTEMPTS, state.attempt_number)

        return OrchestrationResult(
            content=text,
            backend_name=backend.name,
            model_id=state.model_id or backend.model_id,
        )

    @staticmethod
    def _close_failure(
        journal: AttemptJournal,
        backend: Backend,
        state: _CallState,
        attempt_number: int,
        error: BaseException,
    ) -> None:
        state.last_error = error
        if state.abandoned is not None:
            return
        journal.close(
            backend,
            attempt_number,
            state.started_at or utcnow(),
            AttemptOutcome.FAILURE,
            model_id=state.model_id,
            error=error,
        )
