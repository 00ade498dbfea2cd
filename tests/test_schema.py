"""Tests for Schema serialization, validation, and the builder DSL."""

from __future__ import annotations

import json

import pytest
from pydantic import BaseModel

from mendjson import JsonSchemaValidator, Schema
from mendjson.schema import is_structured_response_format, schema_from_response_format


DEFINITION = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "email": {"type": "string"},
        "age": {"type": "integer"},
    },
    "required": ["name"],
}


class AlwaysInvalid:
    """SchemaValidator that rejects everything."""

    def __init__(self):
        self.calls = 0

    def is_valid(self, schema, value):
        self.calls += 1
        return False

    def errors(self, schema, value):
        return ["always wrong"]


# ===========================================================================
# Construction
# ===========================================================================


class TestConstruction:
    def test_requires_name(self):
        with pytest.raises(ValueError, match="name is required"):
            Schema("", DEFINITION)

    def test_definition_must_be_dict(self):
        with pytest.raises(TypeError, match="must be a dict"):
            Schema("bad", ["not", "a", "dict"])

    def test_malformed_definition_rejected(self):
        with pytest.raises(ValueError, match="Invalid JSON Schema"):
            Schema("bad", {"type": "strng"})

    def test_malformed_definition_accepted_without_validation(self):
        schema = Schema("bad", {"type": "strng"}, validator=None)
        assert schema.to_pure() == {"type": "strng"}

    def test_definition_is_copied(self):
        definition = {"type": "object", "properties": {"a": {"type": "string"}}}
        schema = Schema("copy", definition)
        definition["properties"]["b"] = {"type": "integer"}
        assert "b" not in schema.to_pure()["properties"]

    def test_pure_output_cannot_mutate_schema(self):
        schema = Schema("s", DEFINITION)
        schema.to_pure()["properties"].clear()
        assert set(schema.to_pure()["properties"]) == {"name", "email", "age"}

    def test_attributes(self):
        schema = Schema("s", DEFINITION, strict=False)
        assert schema.name == "s"
        assert schema.strict is False

    def test_equality(self):
        assert Schema("s", DEFINITION) == Schema("s", DEFINITION)
        assert Schema("s", DEFINITION) != Schema("t", DEFINITION)
        assert hash(Schema("s", DEFINITION)) == hash(Schema("s", DEFINITION))


# ===========================================================================
# Wire vs pure
# ===========================================================================


class TestSerialization:
    def test_wire_forces_every_property_required(self):
        wire = Schema("person", DEFINITION).to_wire()
        assert wire["name"] == "person"
        assert wire["strict"] is True
        assert wire["schema"]["required"] == ["name", "email", "age"]

    def test_pure_keeps_caller_required(self):
        assert Schema("person", DEFINITION).to_pure()["required"] == ["name"]

    def test_wire_without_properties_left_alone(self):
        wire = Schema("list", {"type": "array", "items": {"type": "string"}}).to_wire()
        assert "required" not in wire["schema"]

    def test_to_json_is_wire(self):
        schema = Schema("person", DEFINITION)
        assert json.loads(schema.to_json()) == schema.to_wire()


# ===========================================================================
# Validation
# ===========================================================================


class TestValidation:
    def test_default_validator_is_jsonschema(self):
        schema = Schema("person", DEFINITION)
        assert schema.validation_available

    def test_valid_value(self):
        schema = Schema("person", DEFINITION)
        assert schema.validate({"name": "Ada"})
        assert schema.validation_errors({"name": "Ada"}) == []

    def test_validation_uses_pure_schema(self):
        """Optional properties stay optional locally even though wire marks them required."""
        schema = Schema("person", DEFINITION)
        assert schema.validate({"name": "Ada"}) is True

    def test_missing_required(self):
        schema = Schema("person", DEFINITION)
        assert not schema.validate({"age": 3})
        assert schema.validation_errors({"age": 3}) == ["$: 'name' is a required property"]

    def test_wrong_type_has_field_path(self):
        errors = Schema("person", DEFINITION).validation_errors({"name": 5})
        assert errors == ["$.name: 5 is not of type 'string'"]

    def test_disabled_validation_is_vacuous(self):
        schema = Schema("person", DEFINITION, validator=None)
        assert not schema.validation_available
        assert schema.validate("anything at all")
        assert schema.validation_errors(42) == []

    def test_custom_validator_injected(self):
        validator = AlwaysInvalid()
        schema = Schema("person", DEFINITION, validator=validator)
        assert not schema.validate({"name": "Ada"})
        assert schema.validation_errors({}) == ["always wrong"]
        assert validator.calls == 1

    def test_explicit_jsonschema_validator(self):
        schema = Schema("person", DEFINITION, validator=JsonSchemaValidator())
        assert schema.validate({"name": "Ada", "age": 30})


# ===========================================================================
# Format instructions
# ===========================================================================


class TestFormatInstructions:
    def test_embeds_wire_schema(self):
        schema = Schema("person", DEFINITION)
        text = schema.format_instructions()
        assert schema.to_json() in text
        assert "Return ONLY the JSON" in text

    def test_forced_variant_is_stricter(self):
        text = Schema("person", DEFINITION).format_instructions(forced=True)
        assert text.startswith("You must format your output")
        assert "CRITICAL" in text
        assert "Do not include any text before or after the JSON" in text

    def test_example_braces_survive_formatting(self):
        text = Schema("person", DEFINITION).format_instructions()
        assert '{"field1": "value1", "field2": "value2"}' in text


# ===========================================================================
# Builder DSL
# ===========================================================================


class TestSchemaBuilder:
    def test_scalars_and_required(self):
        schema = (
            Schema.define("weather")
            .string("location", required=True, description="City name")
            .number("temperature", required=True)
            .integer("humidity", minimum=0, maximum=100)
            .boolean("raining")
            .build()
        )
        pure = schema.to_pure()
        assert pure["type"] == "object"
        assert pure["additionalProperties"] is False
        assert pure["required"] == ["location", "temperature"]
        assert pure["properties"]["location"] == {"type": "string", "description": "City name"}
        assert pure["properties"]["humidity"] == {"type": "integer", "minimum": 0, "maximum": 100}

    def test_nested_object(self):
        schema = (
            Schema.define("order")
            .object(
                "customer",
                lambda o: o.string("name", required=True).string("email"),
                required=True,
            )
            .build()
        )
        customer = schema.to_pure()["properties"]["customer"]
        assert customer["type"] == "object"
        assert customer["required"] == ["name"]
        assert customer["additionalProperties"] is False
        assert set(customer["properties"]) == {"name", "email"}

    def test_array_of_objects(self):
        schema = (
            Schema.define("order")
            .array("items", lambda i: i.object(lambda o: o.string("sku", required=True)))
            .build()
        )
        items = schema.to_pure()["properties"]["items"]
        assert items["type"] == "array"
        assert items["items"]["properties"] == {"sku": {"type": "string"}}
        assert items["items"]["required"] == ["sku"]

    def test_array_with_explicit_items(self):
        schema = Schema.define("tags").array("tags", items={"type": "string"}).build()
        assert schema.to_pure()["properties"]["tags"]["items"] == {"type": "string"}

    def test_required_and_additional_properties(self):
        schema = (
            Schema.define("loose", strict=False)
            .string("a")
            .string("b")
            .required("a", "b", "a")
            .additional_properties(True)
            .build()
        )
        assert schema.strict is False
        assert schema.to_pure()["required"] == ["a", "b"]
        assert schema.to_pure()["additionalProperties"] is True

    def test_built_schema_validates(self):
        schema = Schema.define("person").string("name", required=True).build()
        assert schema.validate({"name": "Ada"})
        assert not schema.validate({"name": "Ada", "extra": 1})

    def test_build_needs_name(self):
        from mendjson import SchemaBuilder

        with pytest.raises(ValueError):
            SchemaBuilder().build()


class TestFromModel:
    def test_from_pydantic_model(self):
        class Person(BaseModel):
            name: str
            age: int | None = None

        schema = Schema.from_model(Person)
        assert schema.name == "Person"
        assert schema.to_pure()["required"] == ["name"]
        assert schema.validate({"name": "Ada"})
        assert not schema.validate({"age": 3})


# ===========================================================================
# response_format helpers
# ===========================================================================


class TestResponseFormatHelpers:
    def test_schema_is_structured(self):
        assert is_structured_response_format(Schema("s", DEFINITION))
        assert is_structured_response_format({"type": "json_schema", "json_schema": {}})
        assert not is_structured_response_format({"type": "json_object"})
        assert not is_structured_response_format(None)

    def test_schema_from_schema(self):
        schema = Schema("s", DEFINITION)
        assert schema_from_response_format(schema) is schema
        assert schema_from_response_format({"type": "json_schema", "json_schema": schema}) is schema

    def test_schema_from_dict(self):
        recovered = schema_from_response_format({
            "type": "json_schema",
            "json_schema": {"name": "person", "strict": False, "schema": DEFINITION},
        })
        assert recovered.name == "person"
        assert recovered.strict is False
        assert recovered.to_pure() == DEFINITION

    def test_schema_from_unusable_dict(self):
        assert schema_from_response_format({"type": "json_object"}) is None
        assert schema_from_response_format("json") is None
