"""Healer prompts for JSON repair.

One user prompt per failure shape:

- **build_json_syntax_prompt** -- the candidate did not parse.
- **build_schema_validation_prompt** -- the candidate parsed but does not
  match the schema.
- **build_forced_extraction_prompt** -- first repair in forced-extraction
  mode; carries the complete original response, prose included.
- **build_generic_prompt** -- anything else.
"""

from __future__ import annotations


def build_json_syntax_prompt(content: str, error: str) -> str:
    """Ask the healer to fix JSON syntax only."""
    return (
        f"Invalid JSON: {error}\n\n"
        "Content to fix:\n"
        f"{content}\n\n"
        "Please fix this content to be valid JSON. Return ONLY the fixed JSON, "
        "no explanations or additional text.\n"
    )


def build_schema_validation_prompt(content: str, schema_json: str, error: str) -> str:
    """Ask the healer to make well-formed JSON conform to the schema."""
    return (
        "The following JSON content is invalid because it failed to validate "
        "against the provided JSON Schema.\n\n"
        "Validation Errors:\n"
        f"{error}\n\n"
        "Original Content to Fix:\n"
        "```json\n"
        f"{content}\n"
        "```\n\n"
        "Required JSON Schema:\n"
        "```json\n"
        f"{schema_json}\n"
        "```\n\n"
        "Please correct the content to produce a valid JSON object that strictly "
        "conforms to the schema.\n"
        "Return ONLY the fixed, raw JSON object, without any surrounding text or "
        "explanations.\n"
    )


def build_forced_extraction_prompt(original_content: str, schema_json: str, error: str) -> str:
    """Ask the healer to pull JSON out of a full prose response and fix it."""
    return (
        "The following response contains explanatory text and JSON that needs to "
        "be extracted and fixed to conform to the provided schema.\n\n"
        "Validation Errors:\n"
        f"{error}\n\n"
        "Original Response Content:\n"
        f"{original_content}\n\n"
        "Required JSON Schema:\n"
        "```json\n"
        f"{schema_json}\n"
        "```\n\n"
        "Please extract and correct the JSON from the response above to produce a "
        "valid JSON object that strictly conforms to the schema.\n"
        "Return ONLY the fixed, raw JSON object, without any surrounding text or "
        "explanations.\n"
    )


def build_generic_prompt(content: str, schema_json: str, error: str) -> str:
    """Fallback repair prompt carrying error, candidate, and schema."""
    return (
        "You are an expert JSON fixing bot. Your task is to correct a malformed "
        "JSON string so that it becomes syntactically valid AND conforms to a "
        "given JSON Schema.\n\n"
        "The user's JSON is invalid for the following reason:\n"
        f"{error}\n\n"
        "Here is the malformed JSON content to fix:\n"
        "```\n"
        f"{content}\n"
        "```\n\n"
        "It MUST be corrected to strictly conform to the following JSON Schema:\n"
        "```json\n"
        f"{schema_json}\n"
        "```\n\n"
        "CRITICAL INSTRUCTIONS:\n"
        "1.  Analyze the error, the broken JSON, and the schema.\n"
        "2.  Correct the JSON so it is syntactically perfect and valid against the schema.\n"
        "3.  Return ONLY the raw, corrected JSON object. Do not include any text, "
        "explanations, or markdown fences.\n"
    )
