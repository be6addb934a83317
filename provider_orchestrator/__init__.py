"""provider-orchestrator: Multi-provider text generation orchestration.

This package sends a prompt to one of several interchangeable AI backends
(Gemini, Groq, Ollama, or any custom Backend) and returns a usable answer
despite individual backends being slow, rate-limited, or down.
"""

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.core.config import Settings, get_settings
from provider_orchestrator.models.results import OrchestrationResult
from provider_orchestrator.orchestration.orchestrator import Orchestrator


__version__ = "0.1.0"
__all__ = [
    "Backend",
    "BackendCapability",
    "OrchestrationResult",
    "Orchestrator",
    "Settings",
    "__version__",
    "get_settings",
]
