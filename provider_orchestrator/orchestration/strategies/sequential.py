"""Sequential fallback - try backends one at a time.

Flow:
    Request → Backend 1 ─fail→ Backend 2 ─fail→ … → AllBackendsFailedError
                   └─ok→ Response      └─ok→ Response

Each backend gets TimeoutGuard(RetryExecutor(invoke)). The first usable
response is returned at once; later backends are never invoked.
"""

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
from provider_orchestrator.resilience.retry import RetryPolicy


logger = get_logger(__name__)


class SequentialStrategy:
    """Sequential fallback across a backend snapshot.

    Attributes:
        invoker: Runs each guarded, retried backend call.
        policy: Retry policy applied to each backend.

    Example:
        strategy = SequentialStrategy(invoker, RetryPolicy(max_attempts=3))
        result = await strategy.execute(registry.list(), prompt, profile, journal)
    """

    name = StrategyKind.SEQUENTIAL.value

    def __init__(self, invoker: BackendInvoker, policy: RetryPolicy) -> None:
        self._invoker = invoker
        self._policy = policy

    @property
    def policy(self) -> RetryPolicy:
        """Get the per-backend retry policy."""
        return self._policy

    async def execute(
        self,
        backends: Sequence[Backend],
        prompt: str,
        profile: PerformanceProfile,
        journal: AttemptJournal,
    ) -> OrchestrationResult:
        """Try each backend in order until one succeeds.

        Args:
            backends: Snapshot of backends, in the order to try them.
            prompt: Validated prompt.
            profile: Profile supplying each backend's deadline.
            journal: Journal of the current request.

        Returns:
            The first successful result.

        Raises:
            NoBackendsAvailableError: If the snapshot is empty.
            AllBackendsFailedError: If every backend failed, listing each
                backend and its reason in order.
        """
        if not backends:
            raise NoBackendsAvailableError()

        tried: list[str] = []
        for backend in backends:
            try:
                return await self._invoker.call(
                    backend,
                    prompt,
                    timeout_ms=profile.timeout_for(backend.kind),
                    journal=journal,
                    policy=self._policy,
                )
            except OrchestratorError as exc:
                tried.append(backend.name)
                logger.info("backend_exhausted", backend=backend.name, error=str(exc))

        raise AllBackendsFailedError(
            self.name,
            failures=journal.terminal_failures(tried),
            attempts=journal.records,
        )
