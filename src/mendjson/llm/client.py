"""Chat-completions transport for OpenAI-compatible providers.

OpenAIClient posts to ``{base_url}/chat/completions`` (OpenRouter by
default) and returns the decoded response dict. Everything the
structured-output layer needs (``response_format``, ``plugins``) is
passed through untouched as extra payload keys.

Transient failures (429, 5xx, connect errors) are retried with
exponential backoff; authentication failures are raised immediately.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
import tenacity

from mendjson.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openrouter/auto"

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
_AUTH_ERROR_STATUS_CODES = frozenset({401, 403})


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, LLMRateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


def _retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _check_response(response: httpx.Response) -> dict:
    """Map an HTTP response to a completion dict or an LLM error."""
    status = response.status_code
    if status in _AUTH_ERROR_STATUS_CODES:
        raise LLMAuthError(f"Authentication failed: HTTP {status} - {response.text}")
    if status == 429:
        raise LLMRateLimitError(
            f"Rate limited: HTTP 429 - {response.text}",
            retry_after=_retry_after(response),
        )
    response.raise_for_status()

    data = response.json()
    if isinstance(data, dict) and "choices" in data:
        return data

    # OpenRouter reports upstream provider failures as a 200 with an error body.
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        raise LLMResponseError(f"API error: {error['message']}")
    raise LLMResponseError(f"Unexpected response format: missing 'choices' key. Response: {data}")


class OpenAIClient:
    """Sync httpx client for OpenAI-compatible chat completions.

    Implements the LLMClient protocol.

    Args:
        api_key: Bearer token. Falls back to ``MENDJSON_API_KEY``.
        base_url: API root. Falls back to ``MENDJSON_BASE_URL``, then OpenRouter.
        default_model: Model used when chat() gets none.
        timeout: Per-request timeout in seconds.
        max_retries: Attempts for retryable failures (1 = no retry).
        extra_headers: Sent with every request, e.g. OpenRouter's
            ``HTTP-Referer`` and ``X-Title``.

    Raises:
        LLMConfigError: No API key given or found in the environment.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = DEFAULT_MODEL,
        timeout: float = 120.0,
        max_retries: int = 3,
        extra_headers: dict[str, str] | None = None,
    ) -> None:
        self._api_key = api_key or os.environ.get("MENDJSON_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Pass api_key= or set MENDJSON_API_KEY."
            )
        base_url = base_url or os.environ.get("MENDJSON_BASE_URL") or DEFAULT_BASE_URL
        self._base_url = base_url.rstrip("/")
        self._default_model = default_model
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
                **(extra_headers or {}),
            },
        )

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """Run one chat completion, retrying transient failures.

        Extra keyword arguments (``response_format``, ``plugins``, ...) are
        merged into the request payload.

        Raises:
            LLMAuthError: On 401/403.
            LLMRateLimitError: On 429 once retries are spent.
            LLMResponseError: On a 200 without ``choices``.
            httpx.HTTPStatusError: On other HTTP errors.
        """
        payload: dict[str, Any] = {"model": model or self._default_model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        payload.update(kwargs)

        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=tenacity.wait_exponential(multiplier=1, min=1, max=30) + tenacity.wait_random(0, 2),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._post, payload)

    def _post(self, payload: dict[str, Any]) -> dict:
        response = self._client.post(f"{self._base_url}/chat/completions", json=payload)
        return _check_response(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
