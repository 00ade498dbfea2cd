"""Shared test fixtures for mendjson.

Provides a scripted completion service, a recording notification sink,
and a couple of schemas used across test modules.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from mendjson import Schema


@dataclass
class FakeCompletion:
    content: str | None


class ScriptedCompletionService:
    """CompletionService fake that replays canned replies.

    Each item in ``replies`` is either a string (returned as content) or an
    exception instance (raised). The last item repeats once the script
    runs out.
    """

    def __init__(self, replies: list | None = None):
        self.replies = list(replies or ['{"name": "Healed"}'])
        self.calls: list[dict] = []

    def complete(self, messages, *, model=None, extras=None):
        self.calls.append({"messages": messages, "model": model, "extras": extras})
        idx = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[idx]
        if isinstance(reply, BaseException):
            raise reply
        return FakeCompletion(reply)

    @property
    def prompts(self) -> list[str]:
        return [call["messages"][0]["content"] for call in self.calls]


class RecordingSink:
    """NotificationSink that records every event."""

    def __init__(self):
        self.events: list[tuple[str, object]] = []

    def emit(self, event, payload=None):
        self.events.append((event, payload))

    @property
    def payloads(self) -> list:
        return [payload for _, payload in self.events]


@pytest.fixture
def person_schema() -> Schema:
    """Object schema with one required string and one optional integer."""
    return Schema(
        "person",
        {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "age": {"type": "integer"},
            },
            "required": ["name"],
        },
    )


@pytest.fixture
def unvalidated_schema() -> Schema:
    """Same shape as person_schema, with validation disabled."""
    return Schema(
        "person",
        {
            "type": "object",
            "properties": {"name": {"type": "string"}},
            "required": ["name"],
        },
        validator=None,
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


def make_completion_response(content: str | None, **extra) -> dict:
    """Build a realistic OpenAI-style chat completion response dict."""
    response = {
        "id": "gen-test123",
        "object": "chat.completion",
        "model": "openai/gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }
    response.update(extra)
    return response


class FakeLLMClient:
    """LLMClient returning canned completion dicts and recording chat kwargs.

    Items in ``replies`` are message contents, or exception instances to
    raise. The last item repeats once the script runs out.
    """

    def __init__(self, replies=('{"name": "Healed"}',)):
        self.replies = list(replies)
        self.calls: list[dict] = []
        self.closed = False

    def chat(self, messages, *, model=None, temperature=None, max_tokens=None, **kwargs):
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        })
        idx = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[idx]
        if isinstance(reply, BaseException):
            raise reply
        return make_completion_response(reply)

    def close(self):
        self.closed = True
