"""Prompt templates for format instructions and JSON healing."""

from mendjson.prompts.format import build_format_instructions
from mendjson.prompts.healing import (
    build_forced_extraction_prompt,
    build_generic_prompt,
    build_json_syntax_prompt,
    build_schema_validation_prompt,
)

__all__ = [
    "build_format_instructions",
    "build_json_syntax_prompt",
    "build_schema_validation_prompt",
    "build_forced_extraction_prompt",
    "build_generic_prompt",
]
