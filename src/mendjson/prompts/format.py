"""Format-instruction prompts for structured output.

Used by Schema.format_instructions() and injected as a system message
when a request runs in forced-extraction mode (the provider is not asked
for native structured output, so the model has to be told).
"""

from __future__ import annotations

FORMAT_INSTRUCTIONS: str = (
    "Please format your output as a JSON value that conforms to the "
    "following JSON Schema specification:\n\n"
    "{schema_json}\n\n"
    "Your response should be valid JSON that matches this schema structure exactly.\n\n"
    "example format:\n"
    "```json\n"
    '{{"field1": "value1", "field2": "value2"}}\n'
    "```\n\n"
    "Important guidelines:\n"
    "- Ensure all required fields match the schema\n"
    "- Use proper JSON formatting (no trailing commas)\n"
    "- Return ONLY the JSON - no other text or explanations\n"
)

FORCED_FORMAT_INSTRUCTIONS: str = (
    "You must format your output as a JSON value that conforms exactly to "
    "the following JSON Schema specification:\n\n"
    "{schema_json}\n\n"
    "CRITICAL: Your entire response must be valid JSON that matches this schema. "
    "Do not include any text before or after the JSON. Return ONLY the JSON "
    "value itself - no other text, explanations, or formatting.\n\n"
    "example format:\n"
    "```json\n"
    '{{"field1": "value1", "field2": "value2"}}\n'
    "```\n\n"
    "Important guidelines:\n"
    "- Ensure all required fields match the schema exactly\n"
    "- Use proper JSON formatting (no trailing commas)\n"
    "- All string values must be properly quoted\n"
)


def build_format_instructions(schema_json: str, *, forced: bool = False) -> str:
    """Render format instructions around a serialized schema."""
    template = FORCED_FORMAT_INSTRUCTIONS if forced else FORMAT_INSTRUCTIONS
    return template.format(schema_json=schema_json)
