"""Core configuration module for provider-orchestrator.

Loads settings from ORCHESTRATOR_* prefixed environment variables using
Pydantic Settings. The same Settings object is what callers hand to
Orchestrator.update_settings() when the user changes preferences.

Patterns applied:
- pydantic-settings BaseSettings (Pydantic v2 split)
- env_prefix = "ORCHESTRATOR_" for namespace isolation
- @field_validator + @classmethod (Pydantic v2 pattern)
- @lru_cache for singleton pattern
- PEP 604 union syntax (X | None)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from provider_orchestrator.core.constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_PERFORMANCE_MODE,
    DEFAULT_RETRY_BASE_DELAY_MS,
    DEFAULT_RETRY_JITTER_MS,
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_RETRY_MULTIPLIER,
    DEFAULT_SERVICE_NAME,
    DEFAULT_TARGETED_MAX_ATTEMPTS,
)


class Settings(BaseSettings):
    """Orchestrator settings loaded from ORCHESTRATOR_* environment variables.

    All environment variables must be prefixed with ORCHESTRATOR_.
    Example: ORCHESTRATOR_PERFORMANCE_MODE=fast,
    ORCHESTRATOR_CUSTOM_TIMEOUTS='{"ollama": 90000}'

    Attributes:
        service_name: Service identifier for logging and tracing.
        log_level: Logging verbosity. Default: INFO.
        performance_mode: Named timeout profile (fast, balanced, thorough).
            Unknown names resolve to balanced.
        custom_timeouts: Per-backend-kind timeout overrides in milliseconds.
        enable_parallel_processing: Race all backends instead of falling back
            one at a time.
        retry_max_attempts: Attempts per backend in sequential fallback.
        retry_base_delay_ms: Backoff delay before the second attempt.
        retry_multiplier: Exponential backoff growth factor.
        retry_jitter_ms: Upper bound of the random delay added to each backoff.
        targeted_max_attempts: Attempts for a targeted (process_with) call.
    """

    # =========================================================================
    # Core Settings
    # =========================================================================
    service_name: str = Field(
        default=DEFAULT_SERVICE_NAME,
        description="Service name for identification",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Performance Preferences
    # =========================================================================
    performance_mode: str = Field(
        default=DEFAULT_PERFORMANCE_MODE,
        description="Performance mode name (fast, balanced, thorough)",
    )
    custom_timeouts: dict[str, int] = Field(
        default_factory=dict,
        description="Timeout overrides in ms keyed by backend kind",
    )
    enable_parallel_processing: bool = Field(
        default=False,
        description="Race all backends concurrently in process()",
    )

    # =========================================================================
    # Retry Settings
    # =========================================================================
    retry_max_attempts: int = Field(
        default=DEFAULT_RETRY_MAX_ATTEMPTS,
        ge=1,
        description="Attempts per backend during sequential fallback",
    )
    retry_base_delay_ms: int = Field(
        default=DEFAULT_RETRY_BASE_DELAY_MS,
        ge=0,
        description="Base backoff delay in milliseconds",
    )
    retry_multiplier: float = Field(
        default=DEFAULT_RETRY_MULTIPLIER,
        ge=1.0,
        description="Exponential backoff multiplier",
    )
    retry_jitter_ms: int = Field(
        default=DEFAULT_RETRY_JITTER_MS,
        ge=0,
        description="Maximum random jitter added to each backoff delay",
    )
    targeted_max_attempts: int = Field(
        default=DEFAULT_TARGETED_MAX_ATTEMPTS,
        ge=1,
        description="Attempts for a targeted process_with() call",
    )

    # =========================================================================
    # Pydantic v2 Model Configuration
    # =========================================================================
    model_config = {
        "env_prefix": "ORCHESTRATOR_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Validators (Pydantic v2 pattern: @field_validator + @classmethod)
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level to uppercase.

        Args:
            v: Input log level string.

        Returns:
            Normalized uppercase log level.

        Raises:
            ValueError: If log level is not valid.
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized not in valid_levels:
            msg = f"log_level must be one of {valid_levels}, got '{v}'"
            raise ValueError(msg)
        return normalized

    @field_validator("performance_mode")
    @classmethod
    def normalize_performance_mode(cls, v: str) -> str:
        """Normalize the performance mode name to lowercase.

        Unknown names are kept as-is; the profile resolver maps them to
        balanced so a stale settings file never blocks startup.
        """
        return v.strip().lower()

    @field_validator("custom_timeouts")
    @classmethod
    def validate_custom_timeouts(cls, v: dict[str, int]) -> dict[str, int]:
        """Reject non-positive timeout overrides.

        Args:
            v: Mapping of backend kind to timeout in milliseconds.

        Returns:
            The mapping with lowercase kind names.

        Raises:
            ValueError: If any timeout is zero or negative.
        """
        normalized: dict[str, int] = {}
        for kind, timeout_ms in v.items():
            if timeout_ms <= 0:
                msg = f"custom_timeouts['{kind}'] must be positive, got {timeout_ms}"
                raise ValueError(msg)
            normalized[kind.lower()] = timeout_ms
        return normalized


@lru_cache
def get_settings() -> Settings:
    """Get singleton Settings instance.

    Uses @lru_cache to ensure only one instance is created.

    Returns:
        Cached Settings instance.
    """
    return Settings()
