"""Completion response wrapper and structured-output facade.

Response wraps the raw OpenAI-style completion dict and exposes the two
ways of reading structured output:

- ``strict`` (default): parse, validate, optionally heal; raises
  StructuredOutputError when no conformant value can be produced.
- ``gentle``: best-effort parse; returns None on any failure.

Extraction policy depends on how the request was made. With forced
extraction the model was only *told* to answer in JSON, so the JSON is
dug out of the text first. With native structured output the content is
parsed as-is: a fenced block in native content is a malformed answer,
not something to unwrap.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from mendjson.exceptions import NoCandidateFoundError, StructuredOutputError
from mendjson.extraction import cleanup_syntax, extract_json_candidate
from mendjson.healing import HealingContext
from mendjson.models.config import StructuredOutputMode
from mendjson.schema import is_structured_response_format, schema_from_response_format

if TYPE_CHECKING:
    from mendjson.client import Client
    from mendjson.schema import Schema

logger = logging.getLogger(__name__)

_UNSET = object()


class Response:
    """A chat completion response.

    Args:
        raw_response: The provider's response dict. Anything else is
            treated as an empty response.
        response_format: The ``response_format`` the request was made with.
        forced_extraction: True if JSON was requested through prompt
            instructions instead of native structured output.
        client: Owning client. Supplies configuration defaults and the
            healer; without it healing is unavailable.
    """

    def __init__(
        self,
        raw_response: dict | None,
        *,
        response_format: Any = None,
        forced_extraction: bool = False,
        client: Client | None = None,
    ) -> None:
        self._raw = raw_response if isinstance(raw_response, dict) else {}
        self._response_format = response_format
        self._forced_extraction = forced_extraction
        self.client = client
        self._schema: Any = _UNSET
        self._strict_results: dict[bool, Any] = {}

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._raw[key]

    def __contains__(self, key: object) -> bool:
        return key in self._raw

    def get(self, key: str, default: Any = None) -> Any:
        return self._raw.get(key, default)

    def to_dict(self) -> dict:
        return dict(self._raw)

    def __repr__(self) -> str:
        return (
            f"Response(id={self.id!r}, model={self.model!r}, "
            f"forced_extraction={self._forced_extraction})"
        )

    @property
    def raw_response(self) -> dict:
        return self._raw

    @property
    def response_format(self) -> Any:
        return self._response_format

    @property
    def forced_extraction(self) -> bool:
        return self._forced_extraction

    # ------------------------------------------------------------------
    # Content accessors
    # ------------------------------------------------------------------

    @property
    def choices(self) -> list[dict]:
        return self._raw.get("choices") or []

    @property
    def content(self) -> Any:
        choices = self.choices
        if not choices:
            return None
        return (choices[0].get("message") or {}).get("content")

    @property
    def has_content(self) -> bool:
        return bool(self.content)

    @property
    def usage(self) -> dict | None:
        return self._raw.get("usage")

    @property
    def id(self) -> str | None:
        return self._raw.get("id")

    @property
    def model(self) -> str | None:
        return self._raw.get("model")

    @property
    def created(self) -> int | None:
        return self._raw.get("created")

    @property
    def provider(self) -> str | None:
        return self._raw.get("provider")

    @property
    def system_fingerprint(self) -> str | None:
        return self._raw.get("system_fingerprint")

    @property
    def finish_reason(self) -> str | None:
        choices = self.choices
        return choices[0].get("finish_reason") if choices else None

    @property
    def native_finish_reason(self) -> str | None:
        choices = self.choices
        return choices[0].get("native_finish_reason") if choices else None

    @property
    def prompt_tokens(self) -> int:
        return (self.usage or {}).get("prompt_tokens") or 0

    @property
    def completion_tokens(self) -> int:
        return (self.usage or {}).get("completion_tokens") or 0

    @property
    def total_tokens(self) -> int:
        return (self.usage or {}).get("total_tokens") or 0

    @property
    def cached_tokens(self) -> int:
        details = (self.usage or {}).get("prompt_tokens_details") or {}
        return details.get("cached_tokens") or 0

    @property
    def is_error(self) -> bool:
        return "error" in self._raw

    @property
    def error_message(self) -> str | None:
        error = self._raw.get("error")
        return error.get("message") if isinstance(error, dict) else None

    def to_message(self) -> dict[str, Any]:
        """This response as an assistant message for the next turn."""
        return {"role": "assistant", "content": self.content}

    # ------------------------------------------------------------------
    # Structured output
    # ------------------------------------------------------------------

    @property
    def structured_output_expected(self) -> bool:
        return is_structured_response_format(self._response_format)

    @property
    def schema(self) -> Schema | None:
        """Schema recovered from the request's response_format."""
        if self._schema is _UNSET:
            self._schema = schema_from_response_format(self._response_format)
        return self._schema

    def structured_output(
        self,
        mode: StructuredOutputMode | str | None = None,
        auto_heal: bool | None = None,
    ) -> Any:
        """Parse the content as structured output.

        Args:
            mode: ``"strict"`` or ``"gentle"``. Defaults to the client's
                ``default_structured_output_mode``, else strict.
            auto_heal: Strict mode only. Overrides the client's
                ``auto_heal_responses`` setting. Strict results are cached
                separately for healed and unhealed parsing.

        Returns:
            The parsed value, or None when the request did not ask for
            structured output, the response is empty, or gentle parsing
            failed.

        Raises:
            ValueError: If mode is not strict or gentle.
            StructuredOutputError: Strict mode could not produce a
                conformant value.
        """
        mode = self._resolve_mode(mode)

        if not self.structured_output_expected or not self.has_content:
            return None

        if mode is StructuredOutputMode.GENTLE:
            return self._gentle_parse()

        should_heal = self._should_heal(auto_heal)
        if should_heal not in self._strict_results:
            self._strict_results[should_heal] = self._strict_parse(should_heal)
        return self._strict_results[should_heal]

    def valid_structured_output(self) -> bool:
        """True if strict structured output succeeds and validates."""
        if not self.structured_output_expected:
            return True
        schema = self.schema
        if schema is None:
            return True
        try:
            value = self.structured_output(mode=StructuredOutputMode.STRICT)
        except StructuredOutputError:
            return False
        if value is None:
            return False
        return schema.validate(value)

    def validation_errors(self) -> list[str]:
        """Validation messages for the strict structured output."""
        if not self.structured_output_expected:
            return []
        schema = self.schema
        if schema is None:
            return []
        try:
            value = self.structured_output(mode=StructuredOutputMode.STRICT)
        except StructuredOutputError:
            return ["Failed to parse structured output"]
        if value is None:
            return []
        return schema.validation_errors(value)

    def _resolve_mode(self, mode: StructuredOutputMode | str | None) -> StructuredOutputMode:
        if mode is None:
            if self.client is not None:
                return self.client.config.default_structured_output_mode
            return StructuredOutputMode.STRICT
        try:
            return StructuredOutputMode(mode)
        except ValueError:
            raise ValueError(
                f"Invalid mode: {mode!r}. Must be 'strict' or 'gentle'."
            ) from None

    def _gentle_parse(self) -> Any:
        try:
            if self._forced_extraction:
                text = extract_json_candidate(self.content)
            else:
                text = self.content
            if text is None:
                return None
            return json.loads(text)
        except (ValueError, TypeError, RecursionError):
            return None

    def _should_heal(self, auto_heal: bool | None) -> bool:
        if auto_heal is not None:
            return bool(auto_heal)
        return self.client is not None and self.client.config.auto_heal_responses

    def _strict_parse(self, should_heal: bool) -> Any:
        content = self.content
        if not isinstance(content, str):
            raise NoCandidateFoundError(
                f"Structured output needs text content, got {type(content).__name__}."
            )

        schema = self.schema
        if should_heal and schema is not None:
            if self.client is not None:
                context = (
                    HealingContext.FORCED_EXTRACTION
                    if self._forced_extraction
                    else HealingContext.GENERIC
                )
                return self.client.healer().heal(content, schema, context)
            logger.debug("Healing requested but response has no client; parsing once")

        return self._parse_once(content, schema)

    def _parse_once(self, content: str, schema: Schema | None) -> Any:
        """Single clean + parse + validate pass with no healer calls."""
        if self._forced_extraction:
            text = extract_json_candidate(content)
            if text is None:
                raise NoCandidateFoundError()
        else:
            text = content

        try:
            value = json.loads(cleanup_syntax(text))
        except (ValueError, TypeError, RecursionError) as exc:
            raise StructuredOutputError(
                f"Failed to parse structured output: {exc}"
            ) from exc

        if schema is not None and not schema.validate(value):
            errors = schema.validation_errors(value)
            raise StructuredOutputError(f"Schema validation failed: {', '.join(errors)}")
        return value
