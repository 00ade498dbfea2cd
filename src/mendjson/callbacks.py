"""Event callbacks.

CallbackRegistry is the built-in NotificationSink. It is owned by a
Client; callbacks are plain callables taking one payload argument.
A callback that raises is logged and skipped, so observers can never
break a request or a healing loop.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

BEFORE_REQUEST = "before_request"
AFTER_RESPONSE = "after_response"
ON_ERROR = "on_error"
ON_HEALING = "on_healing"

EVENTS: tuple[str, ...] = (BEFORE_REQUEST, AFTER_RESPONSE, ON_ERROR, ON_HEALING)

Callback = Callable[[Any], None]


class CallbackRegistry:
    """Per-client registry of event callbacks.

    Usage::

        registry = CallbackRegistry()
        registry.on("on_healing", lambda data: print(data.get("healed")))
        registry.emit("on_healing", {"healed": True})
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, list[Callback]] = {event: [] for event in EVENTS}

    def on(self, event: str, callback: Callback) -> CallbackRegistry:
        """Register a callback. Returns self for chaining.

        Raises:
            ValueError: If event is not one of EVENTS.
        """
        if event not in self._callbacks:
            raise ValueError(
                f"Invalid event: {event}. Valid events are: {', '.join(EVENTS)}"
            )
        self._callbacks[event].append(callback)
        return self

    def clear(self, event: str | None = None) -> CallbackRegistry:
        """Remove callbacks for one event, or for all events."""
        if event is None:
            for key in self._callbacks:
                self._callbacks[key] = []
        elif event in self._callbacks:
            self._callbacks[event] = []
        return self

    def callbacks(self, event: str) -> list[Callback]:
        return list(self._callbacks.get(event, []))

    def emit(self, event: str, payload: Any = None) -> None:
        """Call every callback registered for event. Never raises."""
        for callback in self._callbacks.get(event, []):
            try:
                callback(payload)
            except Exception as exc:
                logger.warning("Callback error for %s: %s", event, exc)
