"""Retry with exponential backoff, jitter and explicit retryability.

Attempt i (1-based) runs the operation. On failure, if i < max_attempts and
the error is retryable, the executor sleeps

    base_delay_ms * multiplier ** (i - 1) + uniform(0, jitter_ms)

and runs attempt i + 1. Non-retryable errors are re-raised at once without
consuming the remaining budget; exhausting the budget re-raises the last
error. Sleeps go through an injectable async sleep, never a blocking one.

Retryable:      RetriableError (timeouts, empty responses), HTTP 429 / 5xx,
                network and transport failures
Not retryable:  NonRetriableError, other HTTP 4xx (bad key, bad request),
                anything unclassified
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from provider_orchestrator.core.exceptions import (
    BackendInvocationError,
    NonRetriableError,
    RetriableError,
    is_retryable_status,
)
from provider_orchestrator.core.logging import get_logger


if TYPE_CHECKING:
    from provider_orchestrator.core.config import Settings


logger = get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]
RetryCallback = Callable[[int, BaseException, float], None]


def is_retryable_error(exc: BaseException) -> bool:
    """Classify an error as transient or permanent.

    Args:
        exc: Error raised by an attempt.

    Returns:
        True if another attempt may succeed.
    """
    if isinstance(exc, BackendInvocationError):
        return exc.retryable
    if isinstance(exc, RetriableError):
        return True
    if isinstance(exc, NonRetriableError):
        return False
    if isinstance(exc, httpx.HTTPStatusError):
        return is_retryable_status(exc.response.status_code)
    return isinstance(exc, (TimeoutError, ConnectionError, httpx.TransportError))


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry configuration.

    Attributes:
        max_attempts: Total attempts including the first (>= 1).
        base_delay_ms: Delay before the second attempt, excluding jitter.
        multiplier: Growth factor applied per further attempt (>= 1).
        jitter_ms: Upper bound of the uniform random delay added to each sleep.
        is_retryable: Classifier deciding whether an error may be retried.
    """

    max_attempts: int = 3
    base_delay_ms: float = 1000
    multiplier: float = 2.0
    jitter_ms: float = 1000
    is_retryable: Callable[[BaseException], bool] = is_retryable_error

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)
        if self.base_delay_ms < 0 or self.jitter_ms < 0:
            msg = "base_delay_ms and jitter_ms must be >= 0"
            raise ValueError(msg)
        if self.multiplier < 1:
            msg = f"multiplier must be >= 1, got {self.multiplier}"
            raise ValueError(msg)

    @classmethod
    def from_settings(cls, settings: Settings, *, targeted: bool = False) -> RetryPolicy:
        """Build a policy from orchestrator settings.

        Args:
            settings: Orchestrator settings.
            targeted: Use the targeted-call attempt budget.

        Returns:
            RetryPolicy with the default classifier.
        """
        return cls(
            max_attempts=(
                settings.targeted_max_attempts if targeted else settings.retry_max_attempts
            ),
            base_delay_ms=settings.retry_base_delay_ms,
            multiplier=settings.retry_multiplier,
            jitter_ms=settings.retry_jitter_ms,
        )

    def backoff_ms(self, attempt_number: int) -> float:
        """Get the delay after a failed attempt, excluding jitter.

        Args:
            attempt_number: 1-based number of the attempt that failed.

        Returns:
            Delay in milliseconds.
        """
        return self.base_delay_ms * self.multiplier ** (attempt_number - 1)

    def with_classifier(
        self, is_retryable: Callable[[BaseException], bool]
    ) -> RetryPolicy:
        """Copy the policy with a different classifier."""
        return replace(self, is_retryable=is_retryable)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: SleepFunc = asyncio.sleep,
    on_retry: RetryCallback | None = None,
) -> T:
    """Run an operation under a retry policy.

    Args:
        operation: Zero-argument coroutine function, called once per attempt.
        policy: Retry policy.
        sleep: Async sleep used for backoff (seconds).
        on_retry: Called as on_retry(attempt_number, error, delay_ms) before
            each backoff sleep.

    Returns:
        The first successful result.

    Raises:
        The last error when the budget is exhausted, or the first
        non-retryable error.
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay_ms = retry_state.upcoming_sleep * 1000
        logger.info(
            "retry_scheduled",
            attempt=retry_state.attempt_number,
            delay_ms=round(delay_ms, 1),
            error=str(error),
        )
        if on_retry is not None and error is not None:
            on_retry(retry_state.attempt_number, error, delay_ms)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=(
            wait_exponential(
                multiplier=policy.base_delay_ms / 1000,
                exp_base=policy.multiplier,
            )
            + wait_random(0, policy.jitter_ms / 1000)
        ),
        retry=retry_if_exception(policy.is_retryable),
        reraise=True,
        sleep=sleep,
        before_sleep=before_sleep,
    )

    async for attempt in retrying:
        with attempt:
            return await operation()

    # AsyncRetrying either returns from the block above or re-raises
    raise RuntimeError("Retry loop completed without returning")


class RetryExecutor:
    """Binds a retry policy and sleep function for repeated use.

    Example:
        executor = RetryExecutor(RetryPolicy(max_attempts=2))
        text = await executor.execute(lambda: backend.invoke(prompt))
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        """Get the default policy."""
        return self._policy

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        on_retry: RetryCallback | None = None,
    ) -> T:
        """Run an operation under this executor's (or the given) policy."""
        return await execute_with_retry(
            operation,
            policy or self._policy,
            sleep=self._sleep,
            on_retry=on_retry,
        )
