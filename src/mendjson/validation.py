"""Pluggable JSON Schema validation.

Validation is an optional capability. A Schema resolves its validator
once, at construction time, through resolve_validator(). When the
``jsonschema`` package is not installed the capability is absent and
every value is treated as valid.

Custom validators only need to satisfy the SchemaValidator protocol.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class SchemaValidator(Protocol):
    """Protocol for validating a decoded JSON value against a JSON Schema."""

    def is_valid(self, schema: dict[str, Any], value: Any) -> bool:
        """Return True if value conforms to schema."""
        ...

    def errors(self, schema: dict[str, Any], value: Any) -> list[str]:
        """Return human-readable, field-level error messages (empty if valid)."""
        ...


class JsonSchemaValidator:
    """SchemaValidator backed by the ``jsonschema`` package.

    The validator class is picked from the schema's ``$schema`` keyword
    (Draft 2020-12 when absent).

    Usage::

        validator = JsonSchemaValidator()
        validator.errors({"type": "object", "required": ["name"]}, {})
        # ["$: 'name' is a required property"]
    """

    def __init__(self) -> None:
        import jsonschema

        self._jsonschema = jsonschema

    def check_schema(self, schema: dict[str, Any]) -> None:
        """Raise ValueError if schema is not a valid JSON Schema for its draft."""
        cls = self._jsonschema.validators.validator_for(schema)
        try:
            cls.check_schema(schema)
        except self._jsonschema.exceptions.SchemaError as exc:
            raise ValueError(f"Invalid JSON Schema: {exc.message}") from exc

    def _compile(self, schema: dict[str, Any]):
        cls = self._jsonschema.validators.validator_for(schema)
        return cls(schema)

    def is_valid(self, schema: dict[str, Any], value: Any) -> bool:
        return self._compile(schema).is_valid(value)

    def errors(self, schema: dict[str, Any], value: Any) -> list[str]:
        validator = self._compile(schema)
        found = sorted(validator.iter_errors(value), key=lambda e: e.json_path)
        return [f"{error.json_path}: {error.message}" for error in found]


def resolve_validator() -> SchemaValidator | None:
    """Return the default validator, or None if ``jsonschema`` is not installed."""
    try:
        return JsonSchemaValidator()
    except ImportError:
        logger.debug("jsonschema not installed; schema validation disabled")
        return None
