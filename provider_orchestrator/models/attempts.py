"""Attempt records - one per backend invocation, retries included.

A record is created when an attempt settles and is never mutated
afterwards (frozen dataclass). Records of one request share the request's
correlation id.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AttemptOutcome(str, Enum):
    """Terminal state of one attempt.

    Values:
        SUCCESS: Backend returned usable text.
        FAILURE: Backend raised or returned nothing usable.
        TIMED_OUT: The deadline expired before the attempt settled.
    """

    SUCCESS = "success"
    FAILURE = "failure"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class AttemptRecord:
    """Closed record of one backend attempt.

    Attributes:
        backend_name: Backend that was invoked.
        model_id: Model the backend was using.
        correlation_id: Id shared by every attempt of one request.
        attempt_number: 1-based attempt index for this backend.
        started_at: When the attempt started (UTC).
        ended_at: When the attempt settled or was abandoned (UTC).
        outcome: Terminal state.
        content: Returned text on success.
        error: Exception on failure or timeout.
    """

    backend_name: str
    model_id: str
    correlation_id: str
    attempt_number: int
    started_at: datetime
    ended_at: datetime
    outcome: AttemptOutcome
    content: str | None = None
    error: BaseException | None = None

    @property
    def duration_ms(self) -> float:
        """Get wall-clock duration in milliseconds."""
        return (self.ended_at - self.started_at).total_seconds() * 1000

    @property
    def succeeded(self) -> bool:
        """Check if the attempt produced usable text."""
        return self.outcome is AttemptOutcome.SUCCESS

    @property
    def reason(self) -> str:
        """Get a one-line failure reason, empty for successes.

        Backend errors already name their backend; the record carries the
        name separately, so only their detail is used.
        """
        if self.error is None:
            return ""
        detail = getattr(self.error, "detail", None)
        if isinstance(detail, str) and detail:
            return detail
        return str(self.error) or type(self.error).__name__
