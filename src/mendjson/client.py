"""Top-level client.

Client implements the CompletionService port on top of an LLMClient
(the built-in OpenAIClient by default). For each request it decides the
structured-output policy:

- **native**: the wire schema goes out as ``response_format`` and the
  provider is trusted to return bare JSON;
- **forced**: no ``response_format`` is sent; format instructions are
  appended as a system message and the JSON is extracted from the text
  afterwards.

The same client serves as the healer's completion service, so healer
calls go through the same transport, retry policy, and callbacks.
"""

from __future__ import annotations

import logging
from typing import Any

from mendjson.callbacks import AFTER_RESPONSE, BEFORE_REQUEST, ON_ERROR, CallbackRegistry
from mendjson.healing import JsonHealer
from mendjson.llm.client import OpenAIClient
from mendjson.llm.protocols import LLMClient
from mendjson.models.config import ClientConfig
from mendjson.response import Response
from mendjson.schema import Schema, is_structured_response_format, schema_from_response_format

logger = logging.getLogger(__name__)

RESPONSE_HEALING_PLUGIN = "response-healing"


class Client:
    """Chat completion client with structured output and self-healing.

    Args:
        config: Client configuration. Defaults to ClientConfig.from_env().
        llm_client: Transport. Defaults to an OpenAIClient built from
            config on first use.
        callbacks: Event registry. A fresh one is created if omitted.

    Usage::

        client = Client(ClientConfig(api_key="sk-or-...", auto_heal_responses=True))
        response = client.complete(
            [{"role": "user", "content": "Weather in Paris?"}],
            model="openai/gpt-4o",
            response_format=weather_schema,
        )
        data = response.structured_output()
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        llm_client: LLMClient | None = None,
        callbacks: CallbackRegistry | None = None,
    ) -> None:
        self.config = config if config is not None else ClientConfig.from_env()
        self._llm_client = llm_client
        self.callbacks = callbacks if callbacks is not None else CallbackRegistry()

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = OpenAIClient(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                default_model=self.config.default_model,
                timeout=self.config.request_timeout,
                max_retries=self.config.max_retries,
                extra_headers=self.config.extra_headers,
            )
        return self._llm_client

    def on(self, event: str, callback) -> Client:
        """Register an event callback. Returns self for chaining."""
        self.callbacks.on(event, callback)
        return self

    def clear_callbacks(self, event: str | None = None) -> Client:
        self.callbacks.clear(event)
        return self

    def healer(self) -> JsonHealer:
        """A JsonHealer wired to this client and its current configuration."""
        return JsonHealer(
            self,
            healer_model=self.config.healer_model,
            max_attempts=self.config.max_heal_attempts,
            max_tokens=self.config.healer_max_tokens,
            notifications=self.callbacks,
        )

    def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        response_format: Any = None,
        force_structured_output: bool | None = None,
        plugins: list[dict[str, Any]] | None = None,
        extras: dict[str, Any] | None = None,
    ) -> Response:
        """Run a chat completion.

        Args:
            messages: Chat messages. Not mutated.
            model: Model id. Defaults to ``config.default_model``.
            response_format: A Schema or a ``{"type": "json_schema", ...}`` /
                ``{"type": "json_object"}`` dict.
            force_structured_output: Use forced extraction instead of native
                structured output. Defaults to ``config.force_structured_output``.
            plugins: Provider plugins, e.g. ``[{"id": "web-search"}]``.
            extras: Extra payload fields (``temperature``, ``max_tokens``, ...).

        Returns:
            A Response bound to this client.
        """
        messages = [dict(message) for message in messages]
        params: dict[str, Any] = dict(extras or {})
        forced = False

        if response_format is not None:
            if force_structured_output is None:
                forced = self.config.force_structured_output
            else:
                forced = force_structured_output
            if forced:
                self._inject_format_instructions(messages, response_format)
            else:
                params["response_format"] = serialize_response_format(response_format)

        plugins = [dict(plugin) for plugin in plugins or []]
        if self._should_add_native_healing(response_format, plugins):
            plugins.append({"id": RESPONSE_HEALING_PLUGIN})
        if plugins:
            params["plugins"] = plugins

        model = model or self.config.default_model
        self.callbacks.emit(BEFORE_REQUEST, {"model": model, "messages": messages, **params})

        temperature = params.pop("temperature", None)
        max_tokens = params.pop("max_tokens", None)
        try:
            raw = self.llm_client.chat(
                messages,
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                **params,
            )
        except Exception as exc:
            self.callbacks.emit(ON_ERROR, exc)
            raise

        response = Response(
            raw,
            response_format=response_format,
            forced_extraction=forced,
            client=self,
        )
        self.callbacks.emit(AFTER_RESPONSE, response)
        return response

    def close(self) -> None:
        if self._llm_client is not None:
            self._llm_client.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _inject_format_instructions(
        self, messages: list[dict[str, Any]], response_format: Any
    ) -> None:
        schema = schema_from_response_format(response_format)
        if schema is None:
            logger.debug("Forced structured output without a schema; no instructions added")
            return
        messages.append({"role": "system", "content": schema.format_instructions(forced=True)})

    def _should_add_native_healing(
        self, response_format: Any, plugins: list[dict[str, Any]]
    ) -> bool:
        if not self.config.auto_native_healing or response_format is None:
            return False
        if not (
            is_structured_response_format(response_format)
            or (isinstance(response_format, dict) and response_format.get("type") == "json_object")
        ):
            return False
        return not any(plugin.get("id") == RESPONSE_HEALING_PLUGIN for plugin in plugins)


def serialize_response_format(response_format: Any) -> Any:
    """Convert Schema objects inside a response_format to their wire form."""
    if isinstance(response_format, Schema):
        return {"type": "json_schema", "json_schema": response_format.to_wire()}
    if isinstance(response_format, dict) and isinstance(response_format.get("json_schema"), Schema):
        return {**response_format, "json_schema": response_format["json_schema"].to_wire()}
    return response_format
