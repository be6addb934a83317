"""Parallel race - call every backend concurrently, pick one success.

Flow:
    Request → [All](concurrent, single attempt each) → all settled
            → first success in REGISTRATION order → Response

Every call is awaited to settlement (all-settled join, no first-wins
cancellation) because backend calls cannot be forcibly stopped. The
winner is then chosen by registration order among the successes, not by
arrival time, so the outcome is deterministic for a given set of
successes. The price is that the race takes as long as its slowest
backend (bounded by that backend's deadline).
"""

import asyncio
from collections.abc import Sequence

from provider_orchestrator.backends.base import Backend
from provider_orchestrator.core.exceptions import (
    AllBackendsFailedError,
    NoBackendsAvailableError,
    OrchestratorError,
)
from provider_orchestrator.core.logging import get_logger
from provider_orchestrator.models.requests import StrategyKind
from provider_orchestrator.models.results import OrchestrationResult
from provider_orchestrator.orchestration.invoker import BackendInvoker
from provider_orchestrator.orchestration.journal import AttemptJournal
from provider_orchestrator.orchestration.profiles import PerformanceProfile


logger = get_logger(__name__)


class ParallelRaceStrategy:
    """Concurrent race across a backend snapshot.

    No retries: a race is meant to be fast, and the other backends are
    the redundancy.

    Example:
        strategy = ParallelRaceStrategy(invoker)
        result = await strategy.execute(registry.list(), prompt, profile, journal)
    """

    name = StrategyKind.PARALLEL_RACE.value

    def __init__(self, invoker: BackendInvoker) -> None:
        self._invoker = invoker

    async def execute(
        self,
        backends: Sequence[Backend],
        prompt: str,
        profile: PerformanceProfile,
        journal: AttemptJournal,
    ) -> OrchestrationResult:
        """Race all backends and return the registration-order winner.

        Args:
            backends: Snapshot of backends; launch order and tie-break order.
            prompt: Validated prompt.
            profile: Profile supplying each backend's deadline.
            journal: Journal of the current request.

        Returns:
            Result of the earliest-registered backend that succeeded.

        Raises:
            NoBackendsAvailableError: If the snapshot is empty.
            AllBackendsFailedError: If no backend succeeded.
        """
        if not backends:
            raise NoBackendsAvailableError()

        settled = await asyncio.gather(
            *(
                self._invoker.call(
                    backend,
                    prompt,
                    timeout_ms=profile.timeout_for(backend.kind),
                    journal=journal,
                )
                for backend in backends
            ),
            return_exceptions=True,
        )

        for backend, outcome in zip(backends, settled):
            if isinstance(outcome, OrchestrationResult):
                logger.info(
                    "race_winner",
                    backend=backend.name,
                    successes=sum(isinstance(o, OrchestrationResult) for o in settled),
                )
                return outcome

        for outcome in settled:
            if not isinstance(outcome, OrchestratorError):
                raise outcome

        raise AllBackendsFailedError(
            self.name,
            failures=journal.terminal_failures([b.name for b in backends]),
            attempts=journal.records,
        )
