"""Groq backend - OpenAI-compatible chat completions."""

from typing import Any

from provider_orchestrator.backends.http import HttpBackend
from provider_orchestrator.core.constants import (
    GROQ_DEFAULT_BASE_URL,
    GROQ_DEFAULT_MODEL,
    KIND_GROQ,
)
from provider_orchestrator.core.exceptions import ConfigurationError


class GroqBackend(HttpBackend):
    """Groq chat completions backend.

    Args:
        api_key: Groq API key (required).
        model: Model id, e.g. "llama-3.1-8b-instant".
        system_prompt: Optional system message sent before the prompt.
    """

    kind = KIND_GROQ
    display_name = "Groq"
    default_base_url = GROQ_DEFAULT_BASE_URL
    default_model = GROQ_DEFAULT_MODEL

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        *,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> None:
        if not api_key:
            raise ConfigurationError("Groq requires an API key", setting="api_key")
        super().__init__(api_key, model, **kwargs)
        self.system_prompt = system_prompt

    def _path(self) -> str:
        return "/openai/v1/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _payload(self, prompt: str) -> dict[str, Any]:
        messages = [{"role": "user", "content": prompt}]
        if self.system_prompt:
            messages.insert(0, {"role": "system", "content": self.system_prompt})
        return {
            "model": self.model_id,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    def _extract_text(self, data: Any) -> str:
        content = data["choices"][0]["message"]["content"]
        return content.strip() if content else ""
