"""Heuristic JSON extraction and deterministic syntax cleanup.

Models rarely return bare JSON. They wrap it in markdown fences, prefix
it with "Here is the JSON:", or bury it in prose. extract_json_candidate()
pulls the most likely JSON fragment out of such text; cleanup_syntax()
repairs the one syntax error that is both common and safe to fix without
a model call (trailing commas).

Neither function parses JSON. Parsing is left to the ``json`` module.
"""

from __future__ import annotations

import re
from typing import Any

__all__ = ["extract_json_candidate", "cleanup_syntax"]

# Fenced block with an optional "json" language tag. Non-greedy so the
# first closing fence ends the block.
CODE_BLOCK_JSON_REGEX = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)

# "Here is the JSON: {...}"
JSON_LABEL_REGEX = re.compile(r"json:", re.IGNORECASE)

# First { or [ through the last } or ]. Greedy and not bracket-aware:
# braces inside strings or several sibling objects can produce a
# candidate that does not parse. The healing loop deals with that.
LOOSE_JSON_REGEX = re.compile(r"(\{.*\}|\[.*\])", re.DOTALL)

_CLOSERS = frozenset("}]")


def extract_json_candidate(text: Any) -> str | None:
    """Extract the most likely JSON fragment from model output.

    Strategies are tried in a fixed priority order and the first one that
    matches wins, regardless of where in the text a lower-priority match
    would have been found:

    1. The inside of a fenced code block (```json or bare ```).
    2. Everything after the last ``json:`` label (case-insensitive).
    3. The first ``{``/``[`` through the last ``}``/``]``.
    4. The whole text, if it starts with ``{`` or ``[``.

    Args:
        text: Raw completion text.

    Returns:
        The trimmed candidate string, or None if nothing looks like JSON.
        Non-string input (e.g. a list of content parts) yields None.
    """
    if not isinstance(text, str) or not text:
        return None

    match = CODE_BLOCK_JSON_REGEX.search(text)
    if match:
        return match.group(1).strip()

    parts = JSON_LABEL_REGEX.split(text)
    if len(parts) > 1:
        remainder = parts[-1].strip()
        if remainder:
            return remainder

    match = LOOSE_JSON_REGEX.search(text)
    if match:
        return match.group(1).strip()

    trimmed = text.strip()
    if trimmed.startswith(("{", "[")):
        return trimmed

    return None


def cleanup_syntax(candidate: str) -> str:
    """Remove trailing commas before a closing ``}`` or ``]``.

    Commas inside string literals are left alone, so valid JSON comes out
    unchanged. Runs of commas (``[1,,]``) are removed together, which keeps
    the transform idempotent.
    """
    out: list[str] = []
    in_string = False
    escape = False
    length = len(candidate)

    for i, char in enumerate(candidate):
        if in_string:
            out.append(char)
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "," and _next_significant(candidate, i + 1, length) in _CLOSERS:
            continue
        out.append(char)

    return "".join(out)


def _next_significant(text: str, start: int, length: int) -> str:
    """Return the next character that is neither whitespace nor a comma."""
    for j in range(start, length):
        char = text[j]
        if char != "," and not char.isspace():
            return char
    return ""
