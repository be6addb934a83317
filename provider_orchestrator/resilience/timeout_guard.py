"""TimeoutGuard - race an awaitable against a deadline.

The guard does NOT stop the guarded operation when the deadline wins:
a timed-out network call may still complete in the background and its
result is discarded. Only backends that declare CANCELLATION get their
timed-out task cancelled, and asyncio cancellation is cooperative, so
even that is advisory.

Flow:
    operation ──► task ──┬─ settles first ──► result / exception
                         └─ deadline first ──► TimedOutError
                                              (task orphaned or cancelled)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from provider_orchestrator.core.exceptions import TimedOutError
from provider_orchestrator.core.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class TimeoutGuard:
    """Races operations against deadlines.

    Timed-out tasks that are not cancelled are kept in an orphan set until
    they settle, so they are not garbage-collected mid-flight and their
    late exceptions are retrieved instead of reported as never retrieved.

    Example:
        guard = TimeoutGuard()
        text = await guard.guard(backend.invoke(prompt), 30_000, "Groq")
    """

    def __init__(self) -> None:
        self._orphans: set[asyncio.Future[object]] = set()

    @property
    def orphan_count(self) -> int:
        """Get number of timed-out operations still running."""
        return len(self._orphans)

    async def guard(
        self,
        operation: Awaitable[T],
        timeout_ms: float,
        label: str,
        *,
        cancel_on_timeout: bool = False,
    ) -> T:
        """Await an operation, failing when it outlives its deadline.

        Args:
            operation: Coroutine or future to run.
            timeout_ms: Deadline in milliseconds.
            label: Name carried by the TimedOutError.
            cancel_on_timeout: Cancel the operation on expiry instead of
                leaving it to finish in the background.

        Returns:
            The operation's result.

        Raises:
            TimedOutError: If the deadline expires first.
            Any exception raised by the operation if it settles first.
        """
        task = asyncio.ensure_future(operation)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            # Caller abandoned the guard; treat it like an expired deadline.
            self._release(task, label, cancel_on_timeout)
            raise

        if task in done:
            return task.result()

        self._release(task, label, cancel_on_timeout)
        logger.warning("operation_timed_out", label=label, timeout_ms=timeout_ms)
        raise TimedOutError(label, timeout_ms)

    def _release(
        self, task: asyncio.Future[T], label: str, cancel: bool
    ) -> None:
        if cancel:
            task.cancel()
            return
        self._orphans.add(task)  # type: ignore[arg-type]
        task.add_done_callback(lambda t: self._discard(t, label))

    def _discard(self, task: asyncio.Future[object], label: str) -> None:
        self._orphans.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        logger.debug(
            "late_settlement_discarded",
            label=label,
            outcome="failure" if exc is not None else "success",
        )
