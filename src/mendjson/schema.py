"""Schema model for structured output.

A Schema wraps a JSON Schema definition with a name and a strictness
flag. It has two serializations:

- **wire** (``to_wire()``) -- sent to the completion provider. Every
  top-level property is listed as required, because strict-mode
  providers reject schemas with optional properties.
- **pure** (``to_pure()``) -- the caller's definition untouched. Used for
  local validation and in healer prompts.

Schemas are immutable once built and safe to share across requests.
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any, Callable, Literal, Union

from mendjson.prompts.format import build_format_instructions
from mendjson.validation import JsonSchemaValidator, SchemaValidator, resolve_validator

if TYPE_CHECKING:
    from pydantic import BaseModel

ValidatorOption = Union[SchemaValidator, Literal["auto"], None]


class Schema:
    """Named, immutable JSON Schema with optional validation.

    Args:
        name: Schema name sent to the provider.
        definition: JSON Schema dict. Deep-copied; later changes to the
            caller's dict have no effect.
        strict: Provider strict-mode flag.
        validator: ``"auto"`` (default) uses ``jsonschema`` when installed,
            ``None`` disables validation, any SchemaValidator is used as-is.
            Resolved once here, never re-probed.

    Raises:
        ValueError: If name is empty, or the definition is not a valid JSON
            Schema and jsonschema is installed.
        TypeError: If definition is not a dict.
    """

    __slots__ = ("_name", "_strict", "_definition", "_validator")

    def __init__(
        self,
        name: str,
        definition: dict[str, Any] | None = None,
        *,
        strict: bool = True,
        validator: ValidatorOption = "auto",
    ) -> None:
        if not name:
            raise ValueError("Schema name is required")
        if definition is None:
            definition = {}
        if not isinstance(definition, dict):
            raise TypeError(
                f"Schema definition must be a dict, got {type(definition).__name__}"
            )
        self._name = name
        self._strict = strict
        self._definition = copy.deepcopy(definition)
        self._validator = resolve_validator() if validator == "auto" else validator
        if isinstance(self._validator, JsonSchemaValidator):
            self._validator.check_schema(self._definition)

    @classmethod
    def define(cls, name: str, *, strict: bool = True) -> SchemaBuilder:
        """Start building a schema with the fluent DSL.

        Usage::

            schema = (
                Schema.define("weather")
                .string("location", required=True, description="City name")
                .number("temperature", required=True)
                .object("wind", lambda o: o.number("speed").string("direction"))
                .build()
            )
        """
        return SchemaBuilder(name, strict=strict)

    @classmethod
    def from_model(
        cls,
        model: type[BaseModel],
        *,
        name: str | None = None,
        strict: bool = True,
        validator: ValidatorOption = "auto",
    ) -> Schema:
        """Build a schema from a pydantic model's JSON schema."""
        return cls(
            name or model.__name__,
            model.model_json_schema(),
            strict=strict,
            validator=validator,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def validation_available(self) -> bool:
        """Whether a validation capability was resolved for this schema."""
        return self._validator is not None

    def to_wire(self) -> dict[str, Any]:
        """Provider payload: ``{"name", "strict", "schema"}`` with all properties required."""
        wire_schema = copy.deepcopy(self._definition)
        properties = wire_schema.get("properties")
        if properties:
            wire_schema["required"] = [str(key) for key in properties]
        return {"name": self._name, "strict": self._strict, "schema": wire_schema}

    def to_pure(self) -> dict[str, Any]:
        """The caller's JSON Schema, with its own required/optional semantics."""
        return copy.deepcopy(self._definition)

    def to_json(self) -> str:
        """Wire form serialized as JSON."""
        return json.dumps(self.to_wire())

    def validate(self, value: Any) -> bool:
        """Validate against the pure schema. Vacuously True without a validator."""
        if self._validator is None:
            return True
        return self._validator.is_valid(self._definition, value)

    def validation_errors(self, value: Any) -> list[str]:
        """Field-level validation messages. Empty without a validator."""
        if self._validator is None:
            return []
        return self._validator.errors(self._definition, value)

    def format_instructions(self, forced: bool = False) -> str:
        """Prompt text telling a model to answer with JSON matching this schema."""
        return build_format_instructions(self.to_json(), forced=forced)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return (
            self._name == other._name
            and self._strict == other._strict
            and self._definition == other._definition
        )

    def __hash__(self) -> int:
        return hash((self._name, self._strict, json.dumps(self._definition, sort_keys=True)))

    def __repr__(self) -> str:
        props = list(self._definition.get("properties", {}))
        return f"Schema(name={self._name!r}, strict={self._strict}, properties={props})"


def is_structured_response_format(response_format: Any) -> bool:
    """True if response_format asks for schema-conformant output."""
    if isinstance(response_format, Schema):
        return True
    return isinstance(response_format, dict) and response_format.get("type") == "json_schema"


def schema_from_response_format(response_format: Any) -> Schema | None:
    """Recover a Schema from a request's ``response_format`` argument.

    Accepts a Schema, ``{"type": "json_schema", "json_schema": Schema}``, or
    ``{"type": "json_schema", "json_schema": {"name": ..., "schema": {...}}}``.
    """
    if isinstance(response_format, Schema):
        return response_format
    if not isinstance(response_format, dict):
        return None
    json_schema = response_format.get("json_schema")
    if isinstance(json_schema, Schema):
        return json_schema
    if isinstance(json_schema, dict) and json_schema.get("schema"):
        return Schema(
            json_schema.get("name") or "response",
            json_schema["schema"],
            strict=json_schema.get("strict", True),
        )
    return None


# ---------------------------------------------------------------------------
# Builder DSL
# ---------------------------------------------------------------------------


class SchemaBuilder:
    """Fluent builder for object schemas.

    New builders disallow additional properties. Every method returns the
    builder so calls chain; nested objects are described by a callable
    that receives a fresh builder.
    """

    def __init__(self, name: str | None = None, *, strict: bool = True) -> None:
        self._name = name
        self._strict = strict
        self._schema: dict[str, Any] = {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        }

    def strict(self, value: bool = True) -> SchemaBuilder:
        """Strict objects reject properties not declared here."""
        return self.additional_properties(not value)

    def additional_properties(self, allowed: bool = True) -> SchemaBuilder:
        self._schema["additionalProperties"] = allowed
        return self

    def no_additional_properties(self) -> SchemaBuilder:
        return self.additional_properties(False)

    def property(
        self,
        name: str,
        type: str,
        *,
        required: bool = False,
        description: str | None = None,
        **options: Any,
    ) -> SchemaBuilder:
        prop: dict[str, Any] = {"type": type}
        if description:
            prop["description"] = description
        prop.update(options)
        self._schema["properties"][name] = prop
        if required:
            self._mark_required(name)
        return self

    def string(self, name: str, *, required: bool = False, description: str | None = None, **options: Any) -> SchemaBuilder:
        return self.property(name, "string", required=required, description=description, **options)

    def integer(self, name: str, *, required: bool = False, description: str | None = None, **options: Any) -> SchemaBuilder:
        return self.property(name, "integer", required=required, description=description, **options)

    def number(self, name: str, *, required: bool = False, description: str | None = None, **options: Any) -> SchemaBuilder:
        return self.property(name, "number", required=required, description=description, **options)

    def boolean(self, name: str, *, required: bool = False, description: str | None = None, **options: Any) -> SchemaBuilder:
        return self.property(name, "boolean", required=required, description=description, **options)

    def array(
        self,
        name: str,
        build: Callable[[ItemsBuilder], Any] | None = None,
        *,
        required: bool = False,
        description: str | None = None,
        items: dict[str, Any] | None = None,
    ) -> SchemaBuilder:
        """Declare an array property.

        Item schema comes from ``items`` if given, otherwise from ``build``,
        which receives an ItemsBuilder.
        """
        array_def: dict[str, Any] = {"type": "array"}
        if description:
            array_def["description"] = description
        if items is not None:
            array_def["items"] = copy.deepcopy(items)
        elif build is not None:
            items_builder = ItemsBuilder()
            build(items_builder)
            array_def["items"] = items_builder.to_dict()
        self._schema["properties"][name] = array_def
        if required:
            self._mark_required(name)
        return self

    def object(
        self,
        name: str,
        build: Callable[[SchemaBuilder], Any] | None = None,
        *,
        required: bool = False,
        description: str | None = None,
    ) -> SchemaBuilder:
        """Declare a nested object property described by ``build``."""
        object_def: dict[str, Any] = {"type": "object", "properties": {}, "required": []}
        if description:
            object_def["description"] = description
        if build is not None:
            object_def.update(_nested_object(build))
        self._schema["properties"][name] = object_def
        if required:
            self._mark_required(name)
        return self

    def required(self, *names: str) -> SchemaBuilder:
        for name in names:
            self._mark_required(name)
        return self

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._schema)

    def build(self, *, validator: ValidatorOption = "auto") -> Schema:
        """Finish the builder and return an immutable Schema."""
        if not self._name:
            raise ValueError("Schema name is required")
        return Schema(self._name, self._schema, strict=self._strict, validator=validator)

    def _mark_required(self, name: str) -> None:
        key = str(name)
        if key not in self._schema["required"]:
            self._schema["required"].append(key)


class ItemsBuilder:
    """Describes the item schema of an array property."""

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    def _scalar(self, type: str, description: str | None, options: dict[str, Any]) -> ItemsBuilder:
        self._items = {"type": type}
        if description:
            self._items["description"] = description
        self._items.update(options)
        return self

    def string(self, *, description: str | None = None, **options: Any) -> ItemsBuilder:
        return self._scalar("string", description, options)

    def integer(self, *, description: str | None = None, **options: Any) -> ItemsBuilder:
        return self._scalar("integer", description, options)

    def number(self, *, description: str | None = None, **options: Any) -> ItemsBuilder:
        return self._scalar("number", description, options)

    def boolean(self, *, description: str | None = None, **options: Any) -> ItemsBuilder:
        return self._scalar("boolean", description, options)

    def object(self, build: Callable[[SchemaBuilder], Any] | None = None) -> ItemsBuilder:
        self._items = {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        }
        if build is not None:
            self._items.update(_nested_object(build))
        return self

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._items)


def _nested_object(build: Callable[[SchemaBuilder], Any]) -> dict[str, Any]:
    """Run ``build`` on a fresh builder and return the object keywords it produced."""
    nested = SchemaBuilder()
    build(nested)
    built = nested.to_dict()
    return {
        "properties": built["properties"],
        "required": built["required"],
        "additionalProperties": built["additionalProperties"],
    }
