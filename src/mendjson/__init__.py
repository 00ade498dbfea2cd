"""mendjson: structured output extraction, validation, and self-healing.

Turns free-text or near-JSON model completions into values that conform
to a JSON Schema, repairing them with a healer model when needed.
"""

__version__ = "0.1.0"

# Core entry points
from mendjson.client import Client, serialize_response_format
from mendjson.response import Response

# Schema and validation
from mendjson.schema import ItemsBuilder, Schema, SchemaBuilder
from mendjson.validation import JsonSchemaValidator, SchemaValidator, resolve_validator

# Extraction and healing
from mendjson.extraction import cleanup_syntax, extract_json_candidate
from mendjson.healing import (
    ErrorKind,
    HealingAttempt,
    HealingContext,
    HealResult,
    JsonHealer,
)

# Configuration and events
from mendjson.models.config import ClientConfig, StructuredOutputMode
from mendjson.callbacks import CallbackRegistry

# Exceptions
from mendjson.exceptions import (
    HealerInvocationError,
    HealingExhaustedError,
    MendError,
    NoCandidateFoundError,
    StructuredOutputError,
)

__all__ = [
    "__version__",
    "Client",
    "Response",
    "serialize_response_format",
    "Schema",
    "SchemaBuilder",
    "ItemsBuilder",
    "SchemaValidator",
    "JsonSchemaValidator",
    "resolve_validator",
    "extract_json_candidate",
    "cleanup_syntax",
    "JsonHealer",
    "HealingContext",
    "HealingAttempt",
    "HealResult",
    "ErrorKind",
    "ClientConfig",
    "StructuredOutputMode",
    "CallbackRegistry",
    "MendError",
    "StructuredOutputError",
    "NoCandidateFoundError",
    "HealingExhaustedError",
    "HealerInvocationError",
]
