"""OpenRouter completion gateway: one endpoint, one prompt, one upstream call."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .. import config
from ..utils.redact import redact_secrets
from .errors import (
    ConfigurationError,
    EndpointNotFound,
    GatewayError,
    InvalidEndpoint,
    MalformedResponse,
    NetworkError,
    UpstreamError,
)
from .registry import ModelRegistry, get_default_registry

logger = logging.getLogger(__name__)

NO_RESPONSE_PLACEHOLDER = "No response"
GENERIC_FAILURE_MESSAGE = "API request failed"


@dataclass(frozen=True)
class CompletionOutcome:
    endpoint_id: str
    content: str
    latency_ms: int
    resolved_model_id: str
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class CompletionResult:
    ok: bool
    endpoint_id: str
    outcome: Optional[CompletionOutcome] = None
    error: Optional[GatewayError] = None
    status_code: Optional[int] = None

    @property
    def error_text(self) -> Optional[str]:
        return self.error.message if self.error is not None else None


_CLIENT: httpx.AsyncClient | None = None


def set_client(client: httpx.AsyncClient | None) -> None:
    global _CLIENT
    _CLIENT = client


def _get_client() -> httpx.AsyncClient:
    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT
    logger.warning("OpenRouter httpx client not set via lifespan; creating a fallback client.")
    _CLIENT = httpx.AsyncClient(timeout=httpx.Timeout(config.OPENROUTER_TIMEOUT_SECONDS))
    return _CLIENT


def _token_count(usage: dict[str, Any], key: str) -> Optional[int]:
    value = usage.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def _upstream_error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message:
                return message
    return GENERIC_FAILURE_MESSAGE


def parse_completion(endpoint_id: str, data: Any, latency_ms: int) -> CompletionOutcome:
    """Normalize an OpenRouter chat-completion payload into a CompletionOutcome."""
    if not isinstance(data, dict):
        data = {}

    choices = data.get("choices")
    first = choices[0] if isinstance(choices, list) and choices else None
    if isinstance(first, dict):
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        content = content if isinstance(content, str) else ""
        finish_reason = first.get("finish_reason")
    else:
        content = NO_RESPONSE_PLACEHOLDER
        finish_reason = None

    usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
    model = data.get("model")

    return CompletionOutcome(
        endpoint_id=endpoint_id,
        content=content,
        latency_ms=latency_ms,
        resolved_model_id=model if isinstance(model, str) and model else endpoint_id,
        prompt_tokens=_token_count(usage, "prompt_tokens"),
        completion_tokens=_token_count(usage, "completion_tokens"),
        total_tokens=_token_count(usage, "total_tokens"),
        finish_reason=finish_reason if isinstance(finish_reason, str) else None,
    )


class OpenRouterGateway:
    """Translates (endpoint id, prompt) into a single chat-completion request.

    Holds no per-call state, so concurrent calls (even for the same endpoint)
    are independent. Settings left as None are read from ``config`` at call
    time.
    """

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        api_key: str | None = None,
        api_url: str | None = None,
        site_url: str | None = None,
        app_title: str | None = None,
        timeout_seconds: float | None = None,
    ):
        self._registry = registry if registry is not None else get_default_registry()
        self._client = client
        self._api_key = api_key
        self._api_url = api_url
        self._site_url = site_url
        self._app_title = app_title
        self._timeout_seconds = timeout_seconds

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    def _resolve_api_key(self) -> str | None:
        return self._api_key if self._api_key is not None else config.OPENROUTER_API_KEY

    def ensure_configured(self) -> None:
        if not self._resolve_api_key():
            raise ConfigurationError("OPENROUTER_API_KEY is not set in environment variables")

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._site_url or config.SITE_URL,
            "X-Title": self._app_title or config.APP_TITLE,
        }

    def _timeout(self) -> float | None:
        return self._timeout_seconds if self._timeout_seconds is not None else config.OPENROUTER_TIMEOUT_SECONDS

    async def complete(self, endpoint_id: str, prompt: str) -> CompletionResult:
        try:
            endpoint = self._registry.resolve(endpoint_id)
        except EndpointNotFound:
            return CompletionResult(ok=False, endpoint_id=endpoint_id, error=InvalidEndpoint(endpoint_id))

        api_key = self._resolve_api_key()
        if not api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not set in environment variables")

        payload = {"model": endpoint.id, "messages": [{"role": "user", "content": prompt}]}
        client = self._client if self._client is not None else _get_client()

        start = time.monotonic()
        try:
            resp = await client.post(
                self._api_url or config.OPENROUTER_API_URL,
                headers=self._headers(api_key),
                json=payload,
                timeout=self._timeout(),
            )
        except (httpx.HTTPError, OSError) as e:
            latency_ms = int((time.monotonic() - start) * 1000)
            message = redact_secrets(str(e)) or type(e).__name__
            logger.warning(
                "openrouter_call_failed model=%s kind=network latency_ms=%s error=%s", endpoint.id, latency_ms, message
            )
            return CompletionResult(ok=False, endpoint_id=endpoint.id, error=NetworkError(message))
        latency_ms = int((time.monotonic() - start) * 1000)

        status_code = resp.status_code
        if not 200 <= status_code < 300:
            try:
                error_payload = resp.json()
            except ValueError:
                error_payload = None
            message = _upstream_error_message(error_payload)
            logger.warning(
                "openrouter_call_failed model=%s status=%s latency_ms=%s error=%s",
                endpoint.id,
                status_code,
                latency_ms,
                redact_secrets(message),
            )
            return CompletionResult(
                ok=False,
                endpoint_id=endpoint.id,
                error=UpstreamError(status_code, message, details=error_payload),
                status_code=status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("openrouter_call_failed model=%s status=%s kind=malformed", endpoint.id, status_code)
            return CompletionResult(
                ok=False,
                endpoint_id=endpoint.id,
                error=MalformedResponse(f"Malformed response from upstream: {e}"),
                status_code=status_code,
            )

        outcome = parse_completion(endpoint.id, data, latency_ms)
        logger.info(
            "openrouter_call_done model=%s resolved_model=%s status=%s latency_ms=%s total_tokens=%s",
            endpoint.id,
            outcome.resolved_model_id,
            status_code,
            latency_ms,
            outcome.total_tokens,
        )
        return CompletionResult(ok=True, endpoint_id=endpoint.id, outcome=outcome, status_code=status_code)
