"""pytest configuration and fixtures for provider-orchestrator tests.

This module provides shared fixtures for unit tests.
Fixtures are minimal and focused: fast settings, a recording sleep and
scripted fake backends.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from provider_orchestrator.core.config import Settings, get_settings
from provider_orchestrator.core.logging import reset_logging


# =============================================================================
# Constants
# =============================================================================

TEST_PROMPT = "Summarize: the quick brown fox jumps over the lazy dog."


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (may require live services)")
    config.addinivalue_line("markers", "slow: Slow tests (real timers, long deadlines)")


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the get_settings() cache around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_logging() -> Generator[None, None, None]:
    """Let each test configure structlog from scratch."""
    reset_logging()
    yield
    reset_logging()


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with no backoff delay, so retries do not slow tests down.

    Returns:
        Settings with zero base delay and zero jitter.
    """
    return Settings(retry_base_delay_ms=0, retry_jitter_ms=0)


# =============================================================================
# Sleep Fixtures
# =============================================================================


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Provide a sleep that returns at once and records delays (seconds)."""
    return RecordingSleep()
