"""Data models for provider-orchestrator.

Modules:
- attempts: AttemptOutcome, AttemptRecord
- requests: StrategyKind, ExecutionRequest
- results: OrchestrationResult
"""

from provider_orchestrator.models.attempts import AttemptOutcome, AttemptRecord
from provider_orchestrator.models.requests import ExecutionRequest, StrategyKind
from provider_orchestrator.models.results import OrchestrationResult


__all__: list[str] = [
    "AttemptOutcome",
    "AttemptRecord",
    "ExecutionRequest",
    "OrchestrationResult",
    "StrategyKind",
]
