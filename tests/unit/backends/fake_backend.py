"""Fake backend for testing the Backend interface and orchestration.

Provides a scripted implementation of Backend. Each invoke() consumes the
next scripted step (the last step repeats once the script runs out): a
string is returned, an exception is raised.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.core.constants import KIND_DEFAULT


ALL_CAPABILITIES = frozenset(BackendCapability)


class FakeBackend(Backend):
    """Scripted Backend for tests.

    Attributes:
        prompts: Every prompt received, in call order.
        timeouts: Every value passed to set_timeout().
        cleaned_up: Number of cleanup() calls.
    """

    def __init__(
        self,
        name: str,
        script: Iterable[str | BaseException] = ("ok",),
        *,
        model_id: str = "fake-model",
        kind: str = KIND_DEFAULT,
        delay_s: float = 0.0,
        capabilities: frozenset[BackendCapability] = ALL_CAPABILITIES,
    ) -> None:
        """Initialize fake backend.

        Args:
            name: Backend name.
            script: Responses and errors, consumed one per call.
            model_id: Initial model id.
            kind: Profile lookup kind.
            delay_s: Seconds to wait before each response.
            capabilities: Declared optional operations.
        """
        self._name = name
        self._script = list(script) or ["ok"]
        self._model_id = model_id
        self.kind = kind
        self.delay_s = delay_s
        self.capabilities = capabilities
        self.prompts: list[str] = []
        self.timeouts: list[int] = []
        self.cleaned_up = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def call_count(self) -> int:
        """Get number of invoke() calls."""
        return len(self.prompts)

    @property
    def current_timeout(self) -> int | None:
        """Get the last timeout set, if any."""
        return self.timeouts[-1] if self.timeouts else None

    async def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        step = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if isinstance(step, BaseException):
            raise step
        return step

    def set_timeout(self, timeout_ms: int) -> None:
        if not self.supports(BackendCapability.SET_TIMEOUT):
            super().set_timeout(timeout_ms)
        self.timeouts.append(timeout_ms)

    def set_model(self, model_id: str) -> None:
        if not self.supports(BackendCapability.SET_MODEL):
            super().set_model(model_id)
        self._model_id = model_id

    async def cleanup(self) -> None:
        if not self.supports(BackendCapability.CLEANUP):
            await super().cleanup()
        self.cleaned_up += 1
