"""Targeted call - one named backend, with optional escalation.

Flow:
    Request → Target (small retry budget)
                ├─ok→ Response
                └─fail→ auto_fallback? ─no→ target's error
                                        └─yes→ Sequential(remaining backends)

Escalation goes to the OTHER registered backends in registration order.
The target is not retried with a different model.
"""

from collections.abc import Sequence

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.core.exceptions import (
    AllBackendsFailedError,
    OrchestratorError,
)
from provider_orchestrator.core.logging import get_logger
from provider_orchestrator.models.requests import StrategyKind
from provider_orchestrator.models.results import OrchestrationResult
from provider_orchestrator.orchestration.invoker import BackendInvoker
from provider_orchestrator.orchestration.journal import AttemptJournal
from provider_orchestrator.orchestration.profiles import PerformanceProfile
from provider_orchestrator.orchestration.strategies.sequential import SequentialStrategy
from provider_orchestrator.resilience.retry import RetryPolicy


logger = get_logger(__name__)


class TargetedStrategy:
    """Call a specific backend, escalating to the rest on request.

    Attributes:
        invoker: Runs the guarded, retried target call.
        policy: Retry policy for the target (2 attempts by default).
        fallback: Sequential strategy used for escalation.
    """

    name = StrategyKind.TARGETED.value

    def __init__(
        self,
        invoker: BackendInvoker,
        policy: RetryPolicy,
        fallback: SequentialStrategy,
    ) -> None:
        self._invoker = invoker
        self._policy = policy
        self._fallback = fallback

    @property
    def policy(self) -> RetryPolicy:
        """Get the target's retry policy."""
        return self._policy

    async def execute(
        self,
        target: Backend,
        remaining: Sequence[Backend],
        prompt: str,
        profile: PerformanceProfile,
        journal: AttemptJournal,
        *,
        model_override: str | None = None,
        auto_fallback: bool = False,
    ) -> OrchestrationResult:
        """Call the target backend.

        Args:
            target: Backend named by the caller.
            remaining: Other backends of the snapshot, in registration order.
            prompt: Validated prompt.
            profile: Profile supplying deadlines.
            journal: Journal of the current request.
            model_override: Model to switch the target to before calling.
            auto_fallback: Escalate to ``remaining`` if the target fails.

        Returns:
            Result of the target, or of the first remaining backend that
            succeeded after escalation.

        Raises:
            OrchestratorError: The target's terminal error when escalation
                is off or there is nothing to escalate to.
            AllBackendsFailedError: If escalation ran and every backend
                failed; the target's failure is listed first.
        """
        if model_override:
            self._apply_model(target, model_override)

        try:
            return await self._invoker.call(
                target,
                prompt,
                timeout_ms=profile.timeout_for(target.kind),
                journal=journal,
                policy=self._policy,
            )
        except OrchestratorError as exc:
            if not auto_fallback or not remaining:
                raise
            logger.info(
                "fallback_escalation",
                backend=target.name,
                remaining=[b.name for b in remaining],
                error=str(exc),
            )
            try:
                return await self._fallback.execute(remaining, prompt, profile, journal)
            except AllBackendsFailedError as aggregate:
                raise AllBackendsFailedError(
                    self.name,
                    failures=journal.terminal_failures(
                        [target.name, *aggregate.backend_names]
                    ),
                    attempts=journal.records,
                ) from exc

    @staticmethod
    def _apply_model(target: Backend, model_override: str) -> None:
        if not target.supports(BackendCapability.SET_MODEL):
            logger.warning(
                "model_override_ignored",
                backend=target.name,
                model=model_override,
            )
            return
        target.set_model(model_override)
