"""Structured logging for provider-orchestrator.

Every line is one JSON object. Lines emitted while an orchestration call
is running carry that call's correlation id, the same id stamped on its
AttemptRecords, so the log of one request can be pulled out of a busy
stream:

    {"event": "attempt_closed", "backend": "Groq", "outcome": "timed_out",
     "correlation_id": "9f0c...", "service": "provider-orchestrator", ...}

configure_logging() runs once; later calls are ignored unless force=True.
get_logger() hands out lazy proxies, so loggers created at import time
pick up whatever configuration is current when they emit.
"""

import contextvars
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.types import EventDict, Processor

from provider_orchestrator.core.constants import DEFAULT_LOG_LEVEL, DEFAULT_SERVICE_NAME


if TYPE_CHECKING:
    from provider_orchestrator.core.config import Settings


_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}

_configured: bool = False

_correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


# =============================================================================
# Correlation IDs
# =============================================================================


def new_correlation_id() -> str:
    """Generate a fresh correlation ID (32 hex characters)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    """Get the correlation ID of the current async context, if any."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> contextvars.Token[str | None]:
    """Set the correlation ID for the current async context.

    Returns:
        Token for reset_correlation_id().
    """
    return _correlation_id_var.set(correlation_id)


def reset_correlation_id(token: contextvars.Token[str | None]) -> None:
    """Restore the correlation ID that was active before set_correlation_id()."""
    _correlation_id_var.reset(token)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Run a block under a correlation ID.

    Tasks created inside the block inherit the ID, so concurrent backend
    calls of one parallel race log under the same request.

    Args:
        correlation_id: ID to use. A new one is generated if omitted.

    Yields:
        The active correlation ID.

    Example:
        with correlation_scope() as cid:
            journal = AttemptJournal(cid, "sequential")
    """
    cid = correlation_id or new_correlation_id()
    token = set_correlation_id(cid)
    try:
        yield cid
    finally:
        reset_correlation_id(token)


# =============================================================================
# Processors
# =============================================================================


def add_correlation_id(
    _logger: object, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Attach the active correlation ID unless the event already has one."""
    correlation_id = get_correlation_id()
    if correlation_id is not None:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def _service_name_adder(service_name: str) -> Processor:
    def add_service_name(
        _logger: object, _method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service_name


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    level: str = DEFAULT_LOG_LEVEL,
    stream: TextIO | None = None,
    force: bool = False,
    service_name: str = DEFAULT_SERVICE_NAME,
) -> None:
    """Configure structlog for JSON output.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        stream: Output stream. Defaults to sys.stdout.
        force: Reconfigure even if already configured.
        service_name: Value of the "service" field on every line.
    """
    global _configured

    if _configured and not force:
        return

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        _service_name_adder(service_name),
        add_correlation_id,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            _LEVELS.get(level.upper(), _LEVELS["INFO"])
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )

    _configured = True


def configure_from_settings(settings: "Settings", stream: TextIO | None = None) -> None:
    """Reconfigure logging from Settings (log_level and service_name)."""
    configure_logging(
        level=settings.log_level,
        stream=stream,
        force=True,
        service_name=settings.service_name,
    )


def reset_logging() -> None:
    """Forget the configuration so the next call configures again. Tests only."""
    global _configured
    _configured = False


def get_logger(name: str) -> Any:
    """Get a named logger, configuring defaults on first use.

    Args:
        name: Logger name, usually the module's __name__.

    Returns:
        Lazy structlog proxy with ``logger_name=name`` bound. It resolves the
        current configuration on every call.
    """
    configure_logging()
    return structlog.get_logger(logger_name=name)
