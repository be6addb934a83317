"""Custom exceptions for provider-orchestrator.

Exception Hierarchy:
    OrchestratorError (base)
    ├── RetriableError (transient errors)
    │   ├── TimedOutError
    │   └── EmptyResponseError
    ├── BackendInvocationError (retryability decided per instance)
    └── NonRetriableError (permanent errors)
        ├── EmptyPromptError
        ├── BackendNotFoundError
        ├── NoBackendsAvailableError
        ├── AllBackendsFailedError
        └── ConfigurationError

Per-attempt errors are recorded and never surfaced on their own; callers
see either a result or one of the pre-flight errors, the terminal error of a
targeted call, or AllBackendsFailedError.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx


if TYPE_CHECKING:
    from provider_orchestrator.models.attempts import AttemptRecord


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """Error codes for provider-orchestrator exceptions.

    These codes provide a consistent way to identify error types
    in logs and attempt records.
    """

    # Base error
    ORCHESTRATOR_ERROR = "ORCHESTRATOR_ERROR"

    # Retriable errors
    TIMED_OUT = "TIMED_OUT"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"

    # Backend failures
    BACKEND_INVOCATION = "BACKEND_INVOCATION"

    # Non-retriable errors
    EMPTY_PROMPT = "EMPTY_PROMPT"
    BACKEND_NOT_FOUND = "BACKEND_NOT_FOUND"
    NO_BACKENDS_AVAILABLE = "NO_BACKENDS_AVAILABLE"
    ALL_BACKENDS_FAILED = "ALL_BACKENDS_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class OrchestratorError(Exception):
    """Base exception for all provider-orchestrator errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.ORCHESTRATOR_ERROR,
        **kwargs: Any,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Retriable / Non-Retriable Bases
# =============================================================================


class RetriableError(OrchestratorError):
    """Base class for transient errors that may succeed on retry.

    Attributes:
        retry_after_ms: Suggested retry delay in milliseconds.
    """

    def __init__(
        self,
        message: str,
        retry_after_ms: int = 1000,
        error_code: str | ErrorCode = ErrorCode.ORCHESTRATOR_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.retry_after_ms = retry_after_ms


class NonRetriableError(OrchestratorError):
    """Base class for permanent errors that should not be retried."""

    pass


# =============================================================================
# Retriable Exceptions
# =============================================================================


class TimedOutError(RetriableError):
    """An operation did not settle before its deadline.

    The underlying operation is not guaranteed to have stopped; it may
    still complete in the background and its result is discarded.

    Attributes:
        label: Label of the guarded operation (usually the backend name).
        timeout_ms: Deadline that was exceeded.
    """

    def __init__(
        self,
        label: str,
        timeout_ms: float,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"{label} timed out after {timeout_ms:g}ms",
            error_code=ErrorCode.TIMED_OUT,
            **kwargs,
        )
        self.label = label
        self.timeout_ms = timeout_ms


class EmptyResponseError(RetriableError):
    """A backend returned an empty or whitespace-only response.

    Attributes:
        backend_name: Backend that produced the empty response.
    """

    def __init__(self, backend_name: str, **kwargs: Any) -> None:
        super().__init__(
            f"{backend_name} returned an empty response",
            error_code=ErrorCode.EMPTY_RESPONSE,
            **kwargs,
        )
        self.backend_name = backend_name


# =============================================================================
# Backend Failures
# =============================================================================

_STATUS_PATTERN = re.compile(r"\b(4\d\d|5\d\d)\b")

_TRANSPORT_ERRORS = (TimeoutError, ConnectionError, httpx.TransportError)


class BackendInvocationError(OrchestratorError):
    """A backend's own failure, wrapped with the backend name.

    Whether it may be retried depends on the cause: HTTP 429 and 5xx
    responses and network failures are transient, every other 4xx
    (invalid key, malformed request, unknown model) is permanent.

    Attributes:
        backend_name: Backend that failed.
        detail: Failure description without the backend name.
        status_code: HTTP status code when the failure came from a response.
        retryable: Whether another attempt may succeed.
    """

    def __init__(
        self,
        backend_name: str,
        message: str,
        status_code: int | None = None,
        retryable: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"{backend_name}: {message}",
            error_code=ErrorCode.BACKEND_INVOCATION,
            **kwargs,
        )
        self.backend_name = backend_name
        self.detail = message
        self.status_code = status_code
        self.retryable = (
            retryable if retryable is not None else is_retryable_status(status_code)
        )

    @classmethod
    def from_exception(
        cls, backend_name: str, exc: BaseException
    ) -> BackendInvocationError:
        """Wrap an arbitrary backend exception.

        Timeouts and network errors are retryable and carry no status code,
        whatever numbers their message contains (ports, durations). For
        anything else the HTTP status code is taken from a ``status_code``
        attribute, a ``response.status_code`` attribute
        (httpx.HTTPStatusError), or a 4xx/5xx number in the message, in that
        order. Errors with no status at all are permanent.

        Args:
            backend_name: Backend that raised.
            exc: Original exception.

        Returns:
            BackendInvocationError carrying the original message.
        """
        message = str(exc) or type(exc).__name__
        if isinstance(exc, _TRANSPORT_ERRORS):
            return cls(backend_name, message, retryable=True)

        status_code = _extract_status_code(exc)
        return cls(
            backend_name,
            message,
            status_code=status_code,
            retryable=None if status_code is not None else False,
        )


def is_retryable_status(status_code: int | None) -> bool:
    """Classify an HTTP status code.

    Args:
        status_code: HTTP status, or None when no response was received.

    Returns:
        True for 429 and 5xx, False for other codes and for None.
    """
    if status_code is None:
        return False
    return status_code == 429 or status_code >= 500


def _extract_status_code(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    match = _STATUS_PATTERN.search(str(exc))
    if match:
        return int(match.group(1))
    return None


# =============================================================================
# Non-Retriable Exceptions
# =============================================================================


class EmptyPromptError(NonRetriableError):
    """The prompt was empty or whitespace-only. No backend was called."""

    def __init__(self, message: str = "A non-empty prompt is required", **kwargs: Any) -> None:
        super().__init__(message, error_code=ErrorCode.EMPTY_PROMPT, **kwargs)


class BackendNotFoundError(NonRetriableError):
    """A targeted call named a backend that is not registered.

    Attributes:
        backend_name: Requested backend name.
        available_backends: Names registered at the time of the call.
    """

    def __init__(
        self,
        backend_name: str,
        available_backends: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> None:
        available = list(available_backends or [])
        super().__init__(
            f"Backend '{backend_name}' not found (available: {', '.join(available) or 'none'})",
            error_code=ErrorCode.BACKEND_NOT_FOUND,
            **kwargs,
        )
        self.backend_name = backend_name
        self.available_backends = available


class NoBackendsAvailableError(NonRetriableError):
    """The registry was empty when a request arrived."""

    def __init__(self, message: str = "No backends are registered", **kwargs: Any) -> None:
        super().__init__(message, error_code=ErrorCode.NO_BACKENDS_AVAILABLE, **kwargs)


class AllBackendsFailedError(NonRetriableError):
    """Every backend tried for one request failed.

    The message enumerates each backend and the reason it failed, in the
    order the backends were tried.

    Attributes:
        strategy: Strategy that exhausted its backends.
        failures: Terminal attempt record of every backend tried (non-empty).
        attempts: Every attempt record of the request, retries included.
    """

    def __init__(
        self,
        strategy: str,
        failures: Sequence[AttemptRecord],
        attempts: Sequence[AttemptRecord] | None = None,
        **kwargs: Any,
    ) -> None:
        if not failures:
            msg = "AllBackendsFailedError requires at least one failure"
            raise ValueError(msg)
        details = "; ".join(f"{f.backend_name}: {f.reason}" for f in failures)
        super().__init__(
            f"All backends failed ({strategy}): {details}",
            error_code=ErrorCode.ALL_BACKENDS_FAILED,
            **kwargs,
        )
        self.strategy = strategy
        self.failures = tuple(failures)
        self.attempts = tuple(attempts) if attempts is not None else self.failures

    @property
    def reasons(self) -> list[tuple[str, str]]:
        """Get (backend_name, reason) pairs in the order backends were tried."""
        return [(f.backend_name, f.reason) for f in self.failures]

    @property
    def backend_names(self) -> list[str]:
        """Get names of the backends that were tried."""
        return [f.backend_name for f in self.failures]


class ConfigurationError(NonRetriableError):
    """Orchestrator configuration is invalid.

    Attributes:
        setting: Name of the problematic setting.
    """

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            **kwargs,
        )
        self.setting = setting
