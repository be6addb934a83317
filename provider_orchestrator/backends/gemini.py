"""Google Gemini backend - generateContent REST API."""

from typing import Any

from provider_orchestrator.backends.http import HttpBackend
from provider_orchestrator.core.constants import (
    GEMINI_DEFAULT_BASE_URL,
    GEMINI_DEFAULT_MODEL,
    KIND_GEMINI,
)
from provider_orchestrator.core.exceptions import ConfigurationError


class GeminiBackend(HttpBackend):
    """Gemini generateContent backend.

    The API key travels as the ``key`` query parameter. The response text
    is the concatenation of the first candidate's text parts.
    """

    kind = KIND_GEMINI
    display_name = "Google Gemini"
    default_base_url = GEMINI_DEFAULT_BASE_URL
    default_model = GEMINI_DEFAULT_MODEL

    def __init__(self, api_key: str, model: str | None = None, **kwargs: Any) -> None:
        if not api_key:
            raise ConfigurationError("Gemini requires an API key", setting="api_key")
        super().__init__(api_key, model, **kwargs)

    def _path(self) -> str:
        return f"/v1beta/models/{self.model_id}:generateContent"

    def _params(self) -> dict[str, str]:
        return {"key": self._api_key or ""}

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }

    def _extract_text(self, data: Any) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts).strip()
