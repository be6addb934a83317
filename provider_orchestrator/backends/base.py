"""Base classes for text generation backends.

Defines the Backend ABC that every backend (built-in HTTP backends and
caller-supplied ones) must implement.

Optional operations are declared up front through capability flags
instead of being discovered by probing attributes at runtime:

    class MyBackend(Backend):
        capabilities = frozenset({BackendCapability.SET_TIMEOUT})

        def set_timeout(self, timeout_ms: int) -> None:
            ...

Callers check ``backend.supports(...)`` before calling an optional method.
An optional method that is called without its capability declared raises
NotImplementedError.

Patterns applied:
- ABC with @abstractmethod decorator
- ClassVar capability set, frozenset so subclasses cannot mutate a parent's
- PEP 604 union syntax (X | None)
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar

from provider_orchestrator.core.constants import KIND_DEFAULT


class BackendCapability(str, Enum):
    """Optional operations a backend may implement.

    Values:
        SET_TIMEOUT: Accepts a request timeout via set_timeout().
        SET_MODEL: Accepts a model switch via set_model().
        CLEANUP: Releases resources via cleanup().
        CANCELLATION: invoke() tolerates asyncio task cancellation, so a
            timed-out call may be cancelled instead of left running.
    """

    SET_TIMEOUT = "set_timeout"
    SET_MODEL = "set_model"
    CLEANUP = "cleanup"
    CANCELLATION = "cancellation"


class Backend(ABC):
    """Abstract base class for text generation backends.

    A backend wraps one external AI service and turns a prompt into text.
    It is the "port" the orchestrator talks to; HTTP clients and test
    doubles are the adapters.

    Attributes:
        kind: Row of the performance profile's timeout table to use.
        capabilities: Optional operations this backend implements.

    Example:
        class EchoBackend(Backend):
            @property
            def name(self) -> str:
                return "Echo"

            @property
            def model_id(self) -> str:
                return "echo-1"

            async def invoke(self, prompt: str) -> str:
                return prompt
    """

    kind: ClassVar[str] = KIND_DEFAULT
    capabilities: ClassVar[frozenset[BackendCapability]] = frozenset()

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the backend name, unique within a registry."""
        ...

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Get the model currently in use."""
        ...

    @abstractmethod
    async def invoke(self, prompt: str) -> str:
        """Turn a prompt into text.

        Args:
            prompt: Non-empty prompt text.

        Returns:
            Generated text. An empty or whitespace-only string is treated
            by the orchestrator as a failed attempt.

        Raises:
            Any exception on failure. OrchestratorError subclasses are kept
            as-is, anything else is wrapped in BackendInvocationError.
        """
        ...

    def supports(self, capability: BackendCapability) -> bool:
        """Check whether an optional operation is implemented.

        Args:
            capability: Capability to check.

        Returns:
            True if the capability is declared.
        """
        return capability in self.capabilities

    def set_timeout(self, timeout_ms: int) -> None:
        """Set the request timeout. Requires SET_TIMEOUT."""
        raise NotImplementedError(f"{self.name} does not support set_timeout")

    def set_model(self, model_id: str) -> None:
        """Switch the model. Requires SET_MODEL."""
        raise NotImplementedError(f"{self.name} does not support set_model")

    async def cleanup(self) -> None:
        """Release held resources. Requires CLEANUP."""
        raise NotImplementedError(f"{self.name} does not support cleanup")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, model_id={self.model_id!r})"
