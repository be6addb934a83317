"""Shared base for backends that call an AI service over HTTP.

HttpBackend owns the request/response cycle on an httpx.AsyncClient and
maps every failure onto BackendInvocationError so the retry classifier
can tell transient failures from permanent ones:

    transport error (refused, reset, read timeout)   retryable
    HTTP 429 / 5xx                                   retryable
    other HTTP 4xx                                   permanent
    2xx with an unreadable payload                   permanent

Subclasses only describe the wire format: endpoint path, request body and
where the text lives in the response.

Patterns applied:
- Template method: invoke() calls _path/_payload/_extract_text
- Lazily created client, closed by cleanup()
- PEP 604 union syntax (X | None)
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, ClassVar

import httpx

from provider_orchestrator.backends.base import Backend, BackendCapability
from provider_orchestrator.backends.errors import describe_http_status, describe_quota
from provider_orchestrator.core.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_PERFORMANCE_MODE,
    DEFAULT_TEMPERATURE,
    KIND_DEFAULT,
    PERFORMANCE_TIMEOUTS_MS,
)
from provider_orchestrator.core.exceptions import BackendInvocationError
from provider_orchestrator.core.logging import get_logger
from provider_orchestrator.observability.tracing import inject_trace_context


logger = get_logger(__name__)


class HttpBackend(Backend):
    """Backend calling a JSON-over-HTTP text generation API.

    Attributes:
        display_name: Default backend name.
        default_base_url: Service root used when none is given.
        default_model: Model used when none is given.
        max_tokens: Generation length limit sent with each request.
        temperature: Sampling temperature sent with each request.
    """

    capabilities = frozenset(
        {
            BackendCapability.SET_TIMEOUT,
            BackendCapability.SET_MODEL,
            BackendCapability.CLEANUP,
            BackendCapability.CANCELLATION,
        }
    )

    display_name: ClassVar[str]
    default_base_url: ClassVar[str]
    default_model: ClassVar[str]

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        base_url: str | None = None,
        timeout_ms: int | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        name: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            api_key: Service API key, if the service needs one.
            model: Model id. Defaults to default_model.
            base_url: Service root. Defaults to default_base_url.
            timeout_ms: Request timeout until a profile sets one.
            max_tokens: Generation length limit.
            temperature: Sampling temperature.
            name: Registry name. Defaults to display_name.
            client: Shared AsyncClient. A private one is created lazily
                otherwise, and only a private client is closed by cleanup().
        """
        self._name = name or self.display_name
        self._api_key = api_key
        self._model = model or self.default_model
        self._base_url = (base_url or self.default_base_url).rstrip("/")
        self._timeout_ms = timeout_ms or _default_timeout_ms(self.kind)
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client
        self._owns_client = client is None

    # -------------------------------------------------------------------------
    # Backend interface
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def model_id(self) -> str:
        return self._model

    @property
    def base_url(self) -> str:
        """Get the service root URL."""
        return self._base_url

    @property
    def timeout_ms(self) -> int:
        """Get the current request timeout in milliseconds."""
        return self._timeout_ms

    def set_timeout(self, timeout_ms: int) -> None:
        """Set the request timeout.

        Raises:
            ValueError: If timeout_ms is not positive.
        """
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
        self._timeout_ms = timeout_ms

    def set_model(self, model_id: str) -> None:
        """Switch the model used by later requests.

        Raises:
            ValueError: If model_id is blank.
        """
        if not model_id or not model_id.strip():
            raise ValueError("model_id must be a non-empty string")
        if model_id != self._model:
            logger.info("backend_model_changed", backend=self.name, previous=self._model, model=model_id)
        self._model = model_id

    async def cleanup(self) -> None:
        """Close the private HTTP client, if one was created."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def invoke(self, prompt: str) -> str:
        """Send the prompt and return the generated text.

        Raises:
            BackendInvocationError: On transport failure, error status or
                unreadable payload.
        """
        headers = inject_trace_context(self._headers())
        try:
            response = await self._get_client().post(
                f"{self._base_url}{self._path()}",
                json=self._payload(prompt),
                params=self._params(),
                headers=headers,
                timeout=self._timeout_ms / 1000,
            )
        except httpx.TransportError as exc:
            detail = str(exc) or type(exc).__name__
            raise BackendInvocationError(
                self.name, f"Request failed: {detail}", retryable=True
            ) from exc

        if response.status_code >= 400:
            raise self._status_error(response)

        try:
            return self._extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise BackendInvocationError(
                self.name, "Malformed response payload", retryable=False
            ) from exc

    # -------------------------------------------------------------------------
    # Wire format hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def _path(self) -> str:
        """Get the endpoint path appended to base_url."""
        ...

    @abstractmethod
    def _payload(self, prompt: str) -> dict[str, Any]:
        """Build the JSON request body."""
        ...

    @abstractmethod
    def _extract_text(self, data: Any) -> str:
        """Pull the generated text out of the decoded response body."""
        ...

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def _params(self) -> dict[str, str] | None:
        return None

    def _describe_status(self, status_code: int) -> str:
        return describe_http_status(status_code)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self._client

    def _status_error(self, response: httpx.Response) -> BackendInvocationError:
        status = response.status_code
        if status == 429:
            detail = describe_quota(response.text)
        else:
            detail = self._describe_status(status)
            provider_message = _provider_message(response)
            if provider_message:
                detail = f"{detail} ({provider_message})"
        return BackendInvocationError(self.name, detail, status_code=status)


def _default_timeout_ms(kind: str) -> int:
    table = PERFORMANCE_TIMEOUTS_MS[DEFAULT_PERFORMANCE_MODE]
    return table.get(kind, table[KIND_DEFAULT])


def _provider_message(response: httpx.Response) -> str | None:
    """Best-effort error text from a JSON error body."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    return error if isinstance(error, str) and error else None
