"""Readable error messages for HTTP backend failures.

Providers return terse or deeply nested error bodies. These helpers turn a
status code, or the raw body of a quota/rate-limit response, into one
sentence, keeping any "retry in N seconds" hint the provider gave.
BackendInvocationError prefixes the backend name itself.
"""

import math
import re


# =============================================================================
# Constants
# =============================================================================

_RETRY_PATTERNS = (
    re.compile(r"retry in ([\d.]+)s", re.IGNORECASE),
    re.compile(r"retry in ([\d.]+) seconds?", re.IGNORECASE),
    re.compile(r"(\d+)\s*seconds?", re.IGNORECASE),
)

_UNAVAILABLE = "Service temporarily unavailable. Try again."

_HTTP_MESSAGES = {
    400: "Invalid request. Check model configuration.",
    401: "Invalid API key. Check your credentials.",
    403: "Access denied. Check your API key permissions.",
    404: "Model not found. Check the model name.",
    429: "Rate limit exceeded. Wait before retrying.",
    500: _UNAVAILABLE,
    502: _UNAVAILABLE,
    503: _UNAVAILABLE,
}


def extract_retry_hint(message: str) -> str:
    """Find a retry delay in a provider message.

    Args:
        message: Raw provider error text.

    Returns:
        " Retry in Ns." with N rounded up, or "" when no delay is mentioned.
    """
    for pattern in _RETRY_PATTERNS:
        match = pattern.search(message)
        if match:
            return f" Retry in {math.ceil(float(match.group(1)))}s."
    return ""


def describe_quota(raw_message: str) -> str:
    """Describe a quota or rate-limit failure.

    Args:
        raw_message: Raw provider error text.

    Returns:
        One sentence, e.g. "Request limit reached. Retry in 3s."
    """
    retry = extract_retry_hint(raw_message)
    msg = raw_message.lower()

    if any(p in msg for p in ("free tier", "free_tier", "limit: 0")):
        return f"Free tier quota exhausted.{retry} Upgrade your plan or wait for quota reset."
    if any(p in msg for p in ("tokens per minute", "tokens per second")):
        return f"Token rate limit reached.{retry} Try a shorter prompt or wait."
    if any(p in msg for p in ("requests per minute", "requests per second")):
        return f"Request limit reached.{retry}"
    if "quota" in msg:
        return f"API quota exceeded.{retry} Check your usage."
    if "rate limit" in msg:
        return f"Rate limit reached.{retry} Wait a moment before retrying."
    return f"API limit reached.{retry}"


def describe_http_status(status_code: int) -> str:
    """Describe an HTTP status failure."""
    return _HTTP_MESSAGES.get(status_code, f"HTTP error {status_code}.")
