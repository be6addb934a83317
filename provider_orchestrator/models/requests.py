"""Execution request model.

ExecutionRequest describes one orchestration call: which prompt, which
strategy, and for targeted calls which backend and model.
"""

from dataclasses import dataclass
from enum import Enum


class StrategyKind(str, Enum):
    """Available orchestration strategies.

    - sequential: Try backends one at a time in registration order
    - parallel_race: Call every backend concurrently, pick one success
    - targeted: Call one named backend, optionally falling back
    """

    SEQUENTIAL = "sequential"
    PARALLEL_RACE = "parallel_race"
    TARGETED = "targeted"


@dataclass(frozen=True)
class ExecutionRequest:
    """One orchestration call.

    Attributes:
        prompt: Prompt text. Validated by the orchestrator, not here, so an
            empty prompt surfaces as EmptyPromptError.
        strategy: Strategy to run.
        backend_name: Target backend (TARGETED only).
        model_override: Model to switch the target backend to (TARGETED only).
        auto_fallback: Escalate to the remaining backends when the target
            fails (TARGETED only).
    """

    prompt: str
    strategy: StrategyKind = StrategyKind.SEQUENTIAL
    backend_name: str | None = None
    model_override: str | None = None
    auto_fallback: bool = False

    def __post_init__(self) -> None:
        if self.strategy is StrategyKind.TARGETED and not self.backend_name:
            msg = "Targeted requests require backend_name"
            raise ValueError(msg)
