"""Backend registry - the ordered set of configured backends.

The registry is shared by every orchestration call. Calls take a snapshot
with list() at entry and never read the registry again, so add() and
remove() between or during requests only affect later calls.

Mutating the registry while a request is in flight is the caller's
responsibility: the in-flight request keeps using its snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.core.logging import get_logger
from provider_orchestrator.orchestration.profiles import PerformanceProfile


logger = get_logger(__name__)


class BackendRegistry:
    """Ordered, name-unique collection of backend handles.

    Registration order is preserved and is the order sequential fallback
    tries backends and the tie-break order of a parallel race.

    Adding a backend whose name is already registered replaces the old
    handle in place (last write wins, original position kept).

    Example:
        registry = BackendRegistry([gemini, groq])
        registry.add(ollama)
        registry.remove("Groq")
        [b.name for b in registry.list()]  # ["Google Gemini", "Ollama"]
    """

    def __init__(self, backends: Iterable[Backend] | None = None) -> None:
        """Initialize the registry.

        Args:
            backends: Initial backends, registered in iteration order.
        """
        self._backends: dict[str, Backend] = {}
        for backend in backends or ():
            self.add(backend)

    def add(self, backend: Backend) -> None:
        """Register a backend, replacing any backend with the same name.

        Args:
            backend: Backend handle to register.
        """
        previous = self._backends.get(backend.name)
        if previous is not None and previous is not backend:
            logger.info(
                "backend_replaced",
                backend=backend.name,
                previous_model=previous.model_id,
                model=backend.model_id,
            )
        self._backends[backend.name] = backend

    def remove(self, name: str) -> bool:
        """Unregister a backend by name.

        Args:
            name: Backend name.

        Returns:
            True if a backend was removed, False if none had that name.
        """
        return self._backends.pop(name, None) is not None

    def get(self, name: str) -> Backend | None:
        """Look up a backend by name.

        Args:
            name: Backend name.

        Returns:
            The backend, or None when not registered.
        """
        return self._backends.get(name)

    def list(self) -> tuple[Backend, ...]:
        """Snapshot the backends in registration order.

        Returns:
            Immutable tuple of backend references.
        """
        return tuple(self._backends.values())

    def names(self) -> list[str]:
        """Get backend names in registration order."""
        return list(self._backends)

    def clear(self) -> None:
        """Unregister every backend."""
        self._backends.clear()

    def apply_profile(self, profile: PerformanceProfile) -> dict[str, int]:
        """Push the profile's timeouts to every backend that accepts one.

        Backends without SET_TIMEOUT are skipped silently.

        Args:
            profile: Resolved performance profile.

        Returns:
            Mapping of backend name to the timeout it was given.
        """
        applied: dict[str, int] = {}
        for backend in self.list():
            if not backend.supports(BackendCapability.SET_TIMEOUT):
                continue
            timeout_ms = profile.timeout_for(backend.kind)
            backend.set_timeout(timeout_ms)
            applied[backend.name] = timeout_ms
        logger.debug("profile_applied", mode=profile.mode.value, timeouts=applied)
        return applied

    def __len__(self) -> int:
        return len(self._backends)

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def __iter__(self) -> Iterator[Backend]:
        return iter(self.list())
