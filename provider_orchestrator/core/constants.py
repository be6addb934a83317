"""Constants for provider-orchestrator.

Centralizes defaults shared by configuration, the profile resolver and the
built-in HTTP backends so the same literal never appears in two places.

Usage:
    from provider_orchestrator.core.constants import DEFAULT_PERFORMANCE_MODE
"""

# =============================================================================
# Service Defaults
# =============================================================================

DEFAULT_SERVICE_NAME = "provider-orchestrator"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PERFORMANCE_MODE = "balanced"

# =============================================================================
# Retry Defaults
# =============================================================================

DEFAULT_RETRY_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY_MS = 1000
DEFAULT_RETRY_MULTIPLIER = 2.0
DEFAULT_RETRY_JITTER_MS = 1000
DEFAULT_TARGETED_MAX_ATTEMPTS = 2

# =============================================================================
# Backend Kinds
# =============================================================================
# A backend kind selects a row of the timeout tables below. Custom backends
# that do not name a kind fall back to KIND_DEFAULT.

KIND_GEMINI = "gemini"
KIND_GROQ = "groq"
KIND_OLLAMA = "ollama"
KIND_DEFAULT = "default"

# =============================================================================
# Timeout Tables (milliseconds)
# =============================================================================
# Local models (ollama) are the slowest, groq is the fastest hosted API.

PERFORMANCE_TIMEOUTS_MS: dict[str, dict[str, int]] = {
    "fast": {
        KIND_GEMINI: 30_000,
        KIND_GROQ: 15_000,
        KIND_OLLAMA: 60_000,
        KIND_DEFAULT: 30_000,
    },
    "balanced": {
        KIND_GEMINI: 60_000,
        KIND_GROQ: 30_000,
        KIND_OLLAMA: 120_000,
        KIND_DEFAULT: 60_000,
    },
    "thorough": {
        KIND_GEMINI: 120_000,
        KIND_GROQ: 60_000,
        KIND_OLLAMA: 300_000,
        KIND_DEFAULT: 120_000,
    },
}

# Older settings files stored the thorough mode under this name
PERFORMANCE_MODE_ALIASES: dict[str, str] = {"quality": "thorough"}

# =============================================================================
# Built-in HTTP Backend Endpoints
# =============================================================================

OLLAMA_DEFAULT_BASE_URL = "http://localhost:11434"
OLLAMA_CLOUD_BASE_URL = "https://ollama.com"
OLLAMA_DEFAULT_MODEL = "llama3.2"

GROQ_DEFAULT_BASE_URL = "https://api.groq.com"
GROQ_DEFAULT_MODEL = "llama-3.3-70b-versatile"

GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"

DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7
