"""Orchestrator - facade over backends, strategies and resilience.

The Orchestrator is the main entry point. It validates requests, takes a
snapshot of the registered backends, resolves the active performance
profile and dispatches to a strategy:

- process(): sequential fallback, or a parallel race when
  enable_parallel_processing is set
- process_with(): targeted call with optional escalation
- execute(): explicit ExecutionRequest dispatch

Callers receive either an OrchestrationResult or exactly one error; per
attempt failures are only journaled, logged and counted.

Example:
    orchestrator = Orchestrator([GeminiBackend(api_key=...), OllamaBackend()])
    result = await orchestrator.process("Summarize this transcript: ...")
    result.backend_name  # "Google Gemini"
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Sequence
from typing import Any

from opentelemetry.trace import Tracer

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.backends.registry import BackendRegistry
from provider_orchestrator.core.config import Settings, get_settings
from provider_orchestrator.core.exceptions import (
    BackendNotFoundError,
    ConfigurationError,
    EmptyPromptError,
    NoBackendsAvailableError,
    OrchestratorError,
)
from provider_orchestrator.core.logging import correlation_scope, get_logger
from provider_orchestrator.models.requests import ExecutionRequest, StrategyKind
from provider_orchestrator.models.results import OrchestrationResult
from provider_orchestrator.observability.metrics import AttemptSink, OrchestrationMetrics
from provider_orchestrator.orchestration.invoker import BackendInvoker
from provider_orchestrator.orchestration.journal import AttemptJournal
from provider_orchestrator.orchestration.profiles import (
    PerformanceProfile,
    PerformanceProfileResolver,
)
from provider_orchestrator.orchestration.strategies.parallel_race import (
    ParallelRaceStrategy,
)
from provider_orchestrator.orchestration.strategies.sequential import SequentialStrategy
from provider_orchestrator.orchestration.strategies.targeted import TargetedStrategy
from provider_orchestrator.resilience.retry import RetryPolicy, SleepFunc
from provider_orchestrator.resilience.timeout_guard import TimeoutGuard


logger = get_logger(__name__)


class Orchestrator:
    """Multi-backend orchestration facade.

    Attributes:
        registry: Shared, ordered backend registry.
        settings: Active settings.
        profile: Active performance profile.
        metrics: Aggregated attempt and request counters.
    """

    def __init__(
        self,
        backends: Iterable[Backend],
        settings: Settings | None = None,
        *,
        sinks: Sequence[AttemptSink] = (),
        resolver: PerformanceProfileResolver | None = None,
        guard: TimeoutGuard | None = None,
        sleep: SleepFunc = asyncio.sleep,
        tracer: Tracer | None = None,
    ) -> None:
        """Initialize the Orchestrator.

        Args:
            backends: Backends in priority order. At least one is required.
            settings: Initial settings. Defaults to get_settings().
            sinks: Extra attempt sinks; the built-in metrics sink always runs.
            resolver: Performance profile resolver.
            guard: Timeout guard shared by all backend calls.
            sleep: Async sleep used for retry backoff.
            tracer: OpenTelemetry tracer for backend.call spans.

        Raises:
            ConfigurationError: If no backends are given.
        """
        initial = list(backends) if backends is not None else []
        if not initial:
            raise ConfigurationError("At least one backend is required", setting="backends")

        self._registry = BackendRegistry(initial)
        self._resolver = resolver or PerformanceProfileResolver()
        self._metrics = OrchestrationMetrics()
        self._sinks: tuple[AttemptSink, ...] = (self._metrics, *sinks)
        self._invoker = BackendInvoker(guard=guard, sleep=sleep, tracer=tracer)

        self._settings: Settings
        self._profile: PerformanceProfile
        self._sequential: SequentialStrategy
        self._race: ParallelRaceStrategy
        self._targeted: TargetedStrategy
        self.update_settings(settings or get_settings())

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def registry(self) -> BackendRegistry:
        """Get the backend registry."""
        return self._registry

    @property
    def settings(self) -> Settings:
        """Get the active settings."""
        return self._settings

    @property
    def profile(self) -> PerformanceProfile:
        """Get the active performance profile."""
        return self._profile

    @property
    def metrics(self) -> OrchestrationMetrics:
        """Get the aggregated metrics."""
        return self._metrics

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def update_settings(self, settings: Settings) -> PerformanceProfile:
        """Apply new settings.

        Resolves the performance profile, rebuilds the strategies' retry
        policies and pushes timeouts to every backend that accepts one.
        Applying the same settings twice yields an equal profile and the
        same backend timeouts.

        Args:
            settings: New settings.

        Returns:
            The resolved PerformanceProfile.
        """
        profile = self._resolver.resolve(
            settings.performance_mode, settings.custom_timeouts
        )
        self._settings = settings
        self._profile = profile
        self._sequential = SequentialStrategy(
            self._invoker, RetryPolicy.from_settings(settings)
        )
        self._race = ParallelRaceStrategy(self._invoker)
        self._targeted = TargetedStrategy(
            self._invoker,
            RetryPolicy.from_settings(settings, targeted=True),
            self._sequential,
        )
        applied = self._registry.apply_profile(profile)
        logger.info(
            "settings_updated",
            performance_mode=profile.mode.value,
            parallel=settings.enable_parallel_processing,
            timeouts=applied,
        )
        return profile

    # -------------------------------------------------------------------------
    # Processing
    # -------------------------------------------------------------------------

    async def process(self, prompt: str) -> OrchestrationResult:
        """Process a prompt with automatic backend selection.

        Runs the parallel race when enable_parallel_processing is set,
        sequential fallback otherwise.

        Args:
            prompt: Prompt text.

        Returns:
            OrchestrationResult from the winning backend.

        Raises:
            EmptyPromptError: If the prompt is empty (no backend is called).
            NoBackendsAvailableError: If the registry is empty.
            AllBackendsFailedError: If every backend failed.
        """
        self._validate_prompt(prompt)
        strategy = (
            StrategyKind.PARALLEL_RACE
            if self._settings.enable_parallel_processing
            else StrategyKind.SEQUENTIAL
        )
        return await self.execute(ExecutionRequest(prompt=prompt, strategy=strategy))

    async def process_with(
        self,
        backend_name: str,
        prompt: str,
        model_override: str | None = None,
        auto_fallback: bool = False,
    ) -> OrchestrationResult:
        """Process a prompt with a specific backend.

        Args:
            backend_name: Registered backend name.
            prompt: Prompt text.
            model_override: Model to switch the backend to (kept afterwards).
            auto_fallback: Escalate to the other backends if it fails.

        Returns:
            OrchestrationResult.

        Raises:
            EmptyPromptError: If the prompt is empty.
            BackendNotFoundError: If no backend has that name (no backend
                is called).
            OrchestratorError: The backend's terminal error without
                auto_fallback.
            AllBackendsFailedError: If escalation ran and everything failed.
        """
        self._validate_prompt(prompt)
        return await self.execute(
            ExecutionRequest(
                prompt=prompt,
                strategy=StrategyKind.TARGETED,
                backend_name=backend_name,
                model_override=model_override,
                auto_fallback=auto_fallback,
            )
        )

    async def execute(self, request: ExecutionRequest) -> OrchestrationResult:
        """Run one ExecutionRequest.

        Takes the backend snapshot and profile once at entry; registry
        changes during the call do not affect it.

        Args:
            request: Execution request.

        Returns:
            OrchestrationResult.
        """
        self._validate_prompt(request.prompt)
        backends = self._registry.list()
        profile = self._profile

        target: Backend | None = None
        if request.strategy is StrategyKind.TARGETED:
            target = next((b for b in backends if b.name == request.backend_name), None)
            if target is None:
                raise BackendNotFoundError(
                    request.backend_name or "", [b.name for b in backends]
                )
        elif not backends:
            raise NoBackendsAvailableError()

        with correlation_scope() as correlation_id:
            journal = AttemptJournal(correlation_id, request.strategy.value, self._sinks)
            started = time.perf_counter()
            try:
                result = await self._dispatch(request, backends, target, profile, journal)
            except OrchestratorError as exc:
                self._metrics.record_request(request.strategy.value, succeeded=False)
                logger.warning(
                    "request_failed",
                    strategy=request.strategy.value,
                    attempts=len(journal.records),
                    error=str(exc),
                )
                raise

            self._metrics.record_request(request.strategy.value, succeeded=True)
            logger.info(
                "request_succeeded",
                strategy=request.strategy.value,
                backend=result.backend_name,
                model=result.model_id,
                attempts=len(journal.records),
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return result

    async def _dispatch(
        self,
        request: ExecutionRequest,
        backends: Sequence[Backend],
        target: Backend | None,
        profile: PerformanceProfile,
        journal: AttemptJournal,
    ) -> OrchestrationResult:
        if target is not None:
            return await self._targeted.execute(
                target,
                [b for b in backends if b is not target],
                request.prompt,
                profile,
                journal,
                model_override=request.model_override,
                auto_fallback=request.auto_fallback,
            )
        if request.strategy is StrategyKind.PARALLEL_RACE:
            return await self._race.execute(backends, request.prompt, profile, journal)
        return await self._sequential.execute(backends, request.prompt, profile, journal)

    @staticmethod
    def _validate_prompt(prompt: str) -> None:
        if not isinstance(prompt, str) or not prompt.strip():
            raise EmptyPromptError()

    # -------------------------------------------------------------------------
    # Backend management
    # -------------------------------------------------------------------------

    def add_backend(self, backend: Backend) -> None:
        """Register a backend (replacing one with the same name).

        The backend receives the active profile's timeout if it accepts one.
        """
        self._registry.add(backend)
        if backend.supports(BackendCapability.SET_TIMEOUT):
            backend.set_timeout(self._profile.timeout_for(backend.kind))

    def remove_backend(self, backend_name: str) -> bool:
        """Unregister a backend. Returns True if one was removed."""
        return self._registry.remove(backend_name)

    def backend_names(self) -> list[str]:
        """Get registered backend names in registration order."""
        return self._registry.names()

    def has_available_backends(self) -> bool:
        """Check whether any backend is registered."""
        return len(self._registry) > 0

    def get_performance_metrics(self) -> dict[str, Any]:
        """Get backend inventory, active profile and aggregated counters."""
        return {
            "backend_count": len(self._registry),
            "backend_names": self._registry.names(),
            "performance_mode": self._profile.mode.value,
            "timeouts_by_kind": dict(self._profile.timeouts_by_kind),
            "parallel_processing": self._settings.enable_parallel_processing,
            "timed_out_in_background": self._invoker.guard.orphan_count,
            **self._metrics.snapshot(),
        }

    async def cleanup(self) -> None:
        """Release backend resources and empty the registry.

        Calls cleanup() on every backend declaring CLEANUP. A failing
        cleanup is logged and the remaining backends are still cleaned up.
        """
        for backend in self._registry.list():
            if not backend.supports(BackendCapability.CLEANUP):
                continue
            try:
                await backend.cleanup()
            except Exception as exc:  # noqa: BLE001 - one backend must not block the rest
                logger.warning("backend_cleanup_failed", backend=backend.name, error=str(exc))
        self._registry.clear()
