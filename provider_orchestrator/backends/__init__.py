"""Text generation backends.

Modules:
- base: Backend ABC and BackendCapability flags
- registry: ordered, name-unique BackendRegistry
- http: HttpBackend shared by the built-in HTTP backends
- ollama / groq / gemini: built-in HTTP backends
- errors: readable messages for HTTP failures
"""

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.backends.gemini import GeminiBackend
from provider_orchestrator.backends.groq import GroqBackend
from provider_orchestrator.backends.http import HttpBackend
from provider_orchestrator.backends.ollama import OllamaBackend
from provider_orchestrator.backends.registry import BackendRegistry


__all__ = [
    "Backend",
    "BackendCapability",
    "BackendRegistry",
    "GeminiBackend",
    "GroqBackend",
    "HttpBackend",
    "OllamaBackend",
]
