"""Multi-backend orchestration for provider-orchestrator.

Modules:
- orchestrator: Orchestrator facade
- profiles: PerformanceMode, PerformanceProfile, PerformanceProfileResolver
- invoker: BackendInvoker (guarded, retried single-backend call)
- journal: AttemptJournal (per-request attempt records)
- strategies/: Strategy implementations
"""

__all__: list[str] = []
