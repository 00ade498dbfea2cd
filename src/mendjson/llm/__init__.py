"""LLM client infrastructure for mendjson.

Provides an OpenAI-compatible HTTP client and the protocols the
structured-output core talks to.
"""

from mendjson.llm.client import OpenAIClient
from mendjson.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
)
from mendjson.llm.protocols import (
    Completion,
    CompletionService,
    LLMClient,
    NotificationSink,
)

__all__ = [
    "OpenAIClient",
    "LLMClient",
    "Completion",
    "CompletionService",
    "NotificationSink",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMResponseError",
]
