"""OpenTelemetry tracing for provider-orchestrator.

Each backend call runs in a "backend.call" span carrying the backend,
model, strategy, deadline and request correlation id. A call that ends in
an error marks its span as failed. Built-in HTTP backends forward the
current trace context to the AI service in W3C headers.

Until setup_tracing() installs an SDK provider the OpenTelemetry API
hands out no-op tracers, so applications that do not trace pay nothing.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from opentelemetry.propagate import inject
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.trace import Span, Tracer

from provider_orchestrator.core.constants import DEFAULT_SERVICE_NAME


TRACER_NAME = "provider_orchestrator"
BACKEND_CALL_SPAN = "backend.call"

ATTR_BACKEND = "orchestrator.backend"
ATTR_MODEL = "orchestrator.model"
ATTR_STRATEGY = "orchestrator.strategy"
ATTR_CORRELATION_ID = "orchestrator.correlation_id"
ATTR_TIMEOUT_MS = "orchestrator.timeout_ms"
ATTR_ATTEMPTS = "orchestrator.attempts"

_provider: Optional[TracerProvider] = None


def setup_tracing(
    service_name: str = DEFAULT_SERVICE_NAME,
    exporter: Optional[SpanExporter] = None,
    *,
    set_global: bool = True,
) -> TracerProvider:
    """Create an SDK TracerProvider exporting backend call spans.

    Args:
        service_name: service.name resource attribute.
        exporter: Span exporter. Defaults to ConsoleSpanExporter.
        set_global: Install the provider as the global OpenTelemetry
            provider (OpenTelemetry accepts this only once per process).

    Returns:
        The new provider. Pass provider.get_tracer(TRACER_NAME) to an
        Orchestrator to trace without touching global state.
    """
    global _provider

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter or ConsoleSpanExporter()))
    if set_global:
        trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def shutdown_tracing() -> None:
    """Flush and shut down the provider created by setup_tracing()."""
    global _provider

    if _provider is None:
        return
    _provider.force_flush()
    _provider.shutdown()
    _provider = None


def get_tracer(name: str = TRACER_NAME) -> Tracer:
    """Get a tracer from the global provider (no-op until configured)."""
    return trace.get_tracer(name)


@contextmanager
def backend_span(
    tracer: Tracer,
    *,
    backend_name: str,
    model_id: str,
    strategy: str,
    correlation_id: str,
    timeout_ms: float,
) -> Iterator[Span]:
    """Run one backend call inside a "backend.call" span.

    An exception leaving the block is recorded on the span and sets its
    status to ERROR before it propagates.
    """
    attributes = {
        ATTR_BACKEND: backend_name,
        ATTR_MODEL: model_id,
        ATTR_STRATEGY: strategy,
        ATTR_CORRELATION_ID: correlation_id,
        ATTR_TIMEOUT_MS: timeout_ms,
    }
    with tracer.start_as_current_span(BACKEND_CALL_SPAN, attributes=attributes) as span:
        yield span


def inject_trace_context(headers: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Add W3C trace headers for the active span to an outbound request.

    Args:
        headers: Headers to extend in place. A new dict is used if omitted.

    Returns:
        The same headers mapping.
    """
    carrier = {} if headers is None else headers
    inject(carrier)
    return carrier
