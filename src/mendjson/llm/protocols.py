"""Ports consumed by the structured-output core.

- CompletionService: anything that can run a chat completion and return
  an object with a ``content`` string. The healer uses it for repair
  calls; Client implements it.
- NotificationSink: fire-and-forget event delivery.
- LLMClient: the raw HTTP-level chat client Client sits on top of.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Completion(Protocol):
    """Result of a completion call. Only ``content`` is required."""

    @property
    def content(self) -> str | None:
        ...


@runtime_checkable
class CompletionService(Protocol):
    """Protocol for running a chat completion.

    The healer always calls it with a single user message, an explicit
    healer model, and ``extras={"temperature": 0.0, "max_tokens": N}``.
    """

    def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        extras: dict[str, Any] | None = None,
    ) -> Completion:
        ...


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol for event delivery. Implementations must not raise."""

    def emit(self, event: str, payload: Any = None) -> None:
        ...


@runtime_checkable
class LLMClient(Protocol):
    """Protocol for pluggable HTTP-level chat clients.

    Any object with chat() and close() methods matching this signature works.
    The built-in OpenAIClient implements this protocol.
    """

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """Send messages, return the OpenAI-style response dict."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
