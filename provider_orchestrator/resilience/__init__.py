"""Resilience primitives for provider-orchestrator.

Modules:
- timeout_guard: TimeoutGuard (deadline race without forced cancellation)
- retry: RetryPolicy, RetryExecutor, execute_with_retry, is_retryable_error
"""

from provider_orchestrator.resilience.retry import (
    RetryExecutor,
    RetryPolicy,
    execute_with_retry,
    is_retryable_error,
)
from provider_orchestrator.resilience.timeout_guard import TimeoutGuard


__all__: list[str] = [
    "RetryExecutor",
    "RetryPolicy",
    "TimeoutGuard",
    "execute_with_retry",
    "is_retryable_error",
]
