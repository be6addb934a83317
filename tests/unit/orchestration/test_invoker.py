"""Tests for BackendInvoker.

Tests verify:
- Successful calls produce an OrchestrationResult and a SUCCESS record
- Empty responses and raised errors become failed attempts
- Retries are journaled one record per attempt
- Deadlines produce exactly one terminal TIMED_OUT record
- A deadline during backoff adds no record for an attempt that never ran
"""

import asyncio

import pytest

from provider_orchestrator.backends.base import BackendCapability
from provider_orchestrator.core.exceptions import (
    BackendInvocationError,
    EmptyResponseError,
    TimedOutError,
)
from provider_orchestrator.models.attempts import AttemptOutcome
from provider_orchestrator.observability.metrics import OrchestrationMetrics
from provider_orchestrator.orchestration.invoker import BackendInvoker
from provider_orchestrator.orchestration.journal import AttemptJournal
from provider_orchestrator.resilience.retry import RetryPolicy
from tests.unit.backends.fake_backend import FakeBackend


NO_CANCELLATION = frozenset(
    {
        BackendCapability.SET_TIMEOUT,
        BackendCapability.SET_MODEL,
        BackendCapability.CLEANUP,
    }
)


@pytest.fixture
def journal() -> AttemptJournal:
    return AttemptJournal("cid", "sequential")


@pytest.fixture
def invoker(recording_sleep) -> BackendInvoker:
    return BackendInvoker(sleep=recording_sleep)


class TestSingleAttempt:
    """Test calls without a retry policy."""

    async def test_success(self, invoker: BackendInvoker, journal: AttemptJournal) -> None:
        backend = FakeBackend("A", ["hello"], model_id="a-1")

        result = await invoker.call(backend, "prompt", timeout_ms=1000, journal=journal)

        assert result.content == "hello"
        assert result.backend_name == "A"
        assert result.model_id == "a-1"
        assert backend.prompts == ["prompt"]
        assert [r.outcome for r in journal.records] == [AttemptOutcome.SUCCESS]

    @pytest.mark.parametrize("empty", ["", "   \n\t"])
    async def test_empty_response_is_failure(
        self, invoker: BackendInvoker, journal: AttemptJournal, empty: str
    ) -> None:
        backend = FakeBackend("A", [empty])

        with pytest.raises(EmptyResponseError):
            await invoker.call(backend, "prompt", timeout_ms=1000, journal=journal)

        assert [r.outcome for r in journal.records] == [AttemptOutcome.FAILURE]

    async def test_foreign_error_wrapped(
        self, invoker: BackendInvoker, journal: AttemptJournal
    ) -> None:
        """Non-orchestrator errors are wrapped with the backend name."""
        original = RuntimeError("API error: 401 - Unauthorized")
        backend = FakeBackend("A", [original])

        with pytest.raises(BackendInvocationError) as exc_info:
            await invoker.call(backend, "prompt", timeout_ms=1000, journal=journal)

        assert exc_info.value.__cause__ is original
        assert exc_info.value.status_code == 401
        assert journal.records[0].error is exc_info.value


class TestRetries:
    """Test calls with a retry policy."""

    async def test_retries_until_success(
        self, invoker: BackendInvoker, journal: AttemptJournal, recording_sleep
    ) -> None:
        backend = FakeBackend("A", [EmptyResponseError("A"), "", "finally"])
        policy = RetryPolicy(max_attempts=3, base_delay_ms=10, jitter_ms=0)

        result = await invoker.call(
            backend, "prompt", timeout_ms=1000, journal=journal, policy=policy
        )

        assert result.content == "finally"
        assert backend.call_count == 3
        assert [r.attempt_number for r in journal.records] == [1, 2, 3]
        assert [r.outcome for r in journal.records] == [
            AttemptOutcome.FAILURE,
            AttemptOutcome.FAILURE,
            AttemptOutcome.SUCCESS,
        ]
        assert len(recording_sleep.delays) == 2

    async def test_permanent_error_not_retried(
        self, invoker: BackendInvoker, journal: AttemptJournal
    ) -> None:
        backend = FakeBackend("A", [BackendInvocationError("A", "Invalid API key", status_code=401)])

        with pytest.raises(BackendInvocationError):
            await invoker.call(
                backend, "p", timeout_ms=1000, journal=journal, policy=RetryPolicy(max_attempts=3)
            )

        assert backend.call_count == 1
        assert len(journal.records) == 1


class TestDeadline:
    """Test deadline handling."""

    async def test_timeout_closes_one_timed_out_record(
        self, invoker: BackendInvoker, journal: AttemptJournal
    ) -> None:
        backend = FakeBackend("A", ["slow"], delay_s=5)

        with pytest.raises(TimedOutError) as exc_info:
            await invoker.call(backend, "p", timeout_ms=30, journal=journal)

        assert exc_info.value.label == "A"
        assert [r.outcome for r in journal.records] == [AttemptOutcome.TIMED_OUT]
        assert journal.records[0].error is exc_info.value

    async def test_late_success_not_journaled(self, journal: AttemptJournal) -> None:
        """A backend that ignores cancellation finishes later, unrecorded."""
        invoker = BackendInvoker()
        backend = FakeBackend("A", ["late"], delay_s=0.05, capabilities=NO_CANCELLATION)

        with pytest.raises(TimedOutError):
            await invoker.call(backend, "p", timeout_ms=10, journal=journal)
        assert invoker.guard.orphan_count == 1

        await asyncio.sleep(0.15)

        assert invoker.guard.orphan_count == 0
        assert [r.outcome for r in journal.records] == [AttemptOutcome.TIMED_OUT]

    async def test_timeout_stops_further_retries(self, journal: AttemptJournal) -> None:
        """No new attempt starts once the deadline has fired."""
        invoker = BackendInvoker()
        backend = FakeBackend(
            "A", [EmptyResponseError("A")], delay_s=0.02, capabilities=NO_CANCELLATION
        )
        policy = RetryPolicy(max_attempts=10, base_delay_ms=0, jitter_ms=0)

        with pytest.raises(TimedOutError):
            await invoker.call(backend, "p", timeout_ms=50, journal=journal, policy=policy)
        calls_at_deadline = backend.call_count

        await asyncio.sleep(0.1)

        assert backend.call_count <= calls_at_deadline + 1
        assert journal.records[-1].outcome is AttemptOutcome.TIMED_OUT
        assert sum(r.outcome is AttemptOutcome.TIMED_OUT for r in journal.records) == 1

    async def test_deadline_during_backoff_keeps_failure_terminal(self) -> None:
        """Only the attempt that ran is journaled and counted."""
        metrics = OrchestrationMetrics()
        journal = AttemptJournal("cid", "sequential", (metrics,))
        invoker = BackendInvoker()
        backend = FakeBackend(
            "A", [BackendInvocationError("A", "Service unavailable", status_code=503)]
        )
        policy = RetryPolicy(max_attempts=3, base_delay_ms=500, jitter_ms=0)

        with pytest.raises(TimedOutError):
            await invoker.call(backend, "p", timeout_ms=100, journal=journal, policy=policy)

        assert backend.call_count == 1
        assert [(r.attempt_number, r.outcome) for r in journal.records] == [
            (1, AttemptOutcome.FAILURE)
        ]
        stats = metrics.backend_stats("A")
        assert (stats.attempts, stats.failures, stats.timeouts) == (1, 1, 0)
