"""Tests for healer prompts and format instructions."""

from __future__ import annotations

from mendjson.prompts import (
    build_format_instructions,
    build_forced_extraction_prompt,
    build_generic_prompt,
    build_json_syntax_prompt,
    build_schema_validation_prompt,
)

SCHEMA_JSON = '{"type": "object", "properties": {"name": {"type": "string"}}}'


class TestHealingPrompts:
    def test_syntax_prompt_has_no_schema(self):
        prompt = build_json_syntax_prompt("{bad", "Expecting value: line 1 column 2 (char 1)")
        assert prompt.startswith("Invalid JSON: Expecting value")
        assert "Content to fix:\n{bad\n" in prompt
        assert SCHEMA_JSON not in prompt

    def test_schema_prompt(self):
        prompt = build_schema_validation_prompt('{"age": 1}', SCHEMA_JSON, "missing name")
        assert "Validation Errors:\nmissing name" in prompt
        assert '```json\n{"age": 1}\n```' in prompt
        assert f"```json\n{SCHEMA_JSON}\n```" in prompt

    def test_forced_prompt_carries_full_response(self):
        original = "Some reasoning.\n\n```json\n{}\n```\nThanks!"
        prompt = build_forced_extraction_prompt(original, SCHEMA_JSON, "missing name")
        assert f"Original Response Content:\n{original}\n" in prompt
        assert "extract and correct the JSON" in prompt

    def test_generic_prompt(self):
        prompt = build_generic_prompt("[[[", SCHEMA_JSON, "too deep")
        assert "The user's JSON is invalid for the following reason:\ntoo deep" in prompt
        assert "```\n[[[\n```" in prompt
        assert SCHEMA_JSON in prompt


class TestFormatInstructions:
    def test_gentle_variant(self):
        text = build_format_instructions(SCHEMA_JSON)
        assert SCHEMA_JSON in text
        assert "CRITICAL" not in text

    def test_forced_variant(self):
        text = build_format_instructions(SCHEMA_JSON, forced=True)
        assert SCHEMA_JSON in text
        assert "CRITICAL" in text
