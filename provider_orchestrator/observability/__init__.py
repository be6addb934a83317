"""Observability for provider-orchestrator.

Modules:
- tracing: OpenTelemetry tracer setup and outbound trace propagation
- metrics: AttemptSink protocol and aggregated OrchestrationMetrics
"""

from provider_orchestrator.observability.metrics import (
    AttemptSink,
    BackendStats,
    OrchestrationMetrics,
)
from provider_orchestrator.observability.tracing import (
    get_tracer,
    inject_trace_context,
    setup_tracing,
    shutdown_tracing,
)


__all__ = [
    "AttemptSink",
    "BackendStats",
    "OrchestrationMetrics",
    "get_tracer",
    "inject_trace_context",
    "setup_tracing",
    "shutdown_tracing",
]
