"""Ollama backend - local Ollama server or Ollama Cloud.

Local API: http://localhost:11434/api/generate
Cloud API: https://ollama.com/api/generate (bearer API key)
"""

from typing import Any

from provider_orchestrator.backends.http import HttpBackend
from provider_orchestrator.core.constants import (
    KIND_OLLAMA,
    OLLAMA_CLOUD_BASE_URL,
    OLLAMA_DEFAULT_BASE_URL,
    OLLAMA_DEFAULT_MODEL,
)


class OllamaBackend(HttpBackend):
    """Ollama /api/generate backend.

    The base URL may be given with or without the trailing "/api".
    An API key is only needed for Ollama Cloud.

    Example:
        backend = OllamaBackend(model="llama3.2:latest")
        cloud = OllamaBackend(api_key=key, base_url=OLLAMA_CLOUD_BASE_URL)
    """

    kind = KIND_OLLAMA
    display_name = "Ollama"
    default_base_url = OLLAMA_DEFAULT_BASE_URL
    default_model = OLLAMA_DEFAULT_MODEL

    def __init__(self, api_key: str | None = None, model: str | None = None, **kwargs: Any) -> None:
        base_url = kwargs.pop("base_url", None)
        if base_url:
            base_url = base_url.rstrip("/").removesuffix("/api")
        super().__init__(api_key, model, base_url=base_url, **kwargs)

    @property
    def is_cloud(self) -> bool:
        """Check whether the backend points at Ollama Cloud."""
        return self.base_url.startswith(OLLAMA_CLOUD_BASE_URL)

    def _path(self) -> str:
        return "/api/generate"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model_id,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }

    def _extract_text(self, data: Any) -> str:
        text = data["response"]
        return text.strip() if text else ""

    def _describe_status(self, status_code: int) -> str:
        is_cloud_model = "-cloud" in self.model_id or ":cloud" in self.model_id
        if status_code == 404:
            if is_cloud_model and not self.is_cloud:
                return (
                    f'Cloud model "{self.model_id}" requires Ollama Cloud. '
                    "Use a local model or point base_url at Ollama Cloud."
                )
            return f"Model not found: {self.model_id}. Pull it with 'ollama pull {self.model_id}'."
        if status_code == 401 and not is_cloud_model:
            return "Authentication failed. Check whether your Ollama instance requires a key."
        return super()._describe_status(status_code)
