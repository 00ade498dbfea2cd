"""Bounded self-healing loop for structured output.

JsonHealer turns model output into a schema-conformant value:

    extract -> clean -> parse -> validate -> SUCCESS
                           \\         /
                            failure -> healer model -> extract -> ...

Each failure is recorded as a HealingAttempt tagged with an ErrorKind.
The tag, the HealingContext, and the attempt index pick the healer
prompt. A failed healer call counts against the budget but never aborts
the loop, so the loop ends either with a value or with
HealingExhaustedError once ``max_attempts`` healer calls have been spent.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from mendjson.callbacks import ON_HEALING
from mendjson.exceptions import (
    HealerInvocationError,
    HealingExhaustedError,
    NoCandidateFoundError,
)
from mendjson.extraction import cleanup_syntax, extract_json_candidate
from mendjson.prompts.healing import (
    build_forced_extraction_prompt,
    build_generic_prompt,
    build_json_syntax_prompt,
    build_schema_validation_prompt,
)

if TYPE_CHECKING:
    from mendjson.llm.protocols import CompletionService, NotificationSink
    from mendjson.schema import Schema

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_HEALER_MODEL = "openai/gpt-4o-mini"
DEFAULT_HEALER_MAX_TOKENS = 4000


class HealingContext(str, enum.Enum):
    """Where the text being healed came from.

    - ``GENERIC``: the provider was asked for native structured output.
    - ``FORCED_EXTRACTION``: JSON was requested through prompt
      instructions and may be buried in prose. The first healer call then
      receives the complete original response instead of the candidate.
    """

    GENERIC = "generic"
    FORCED_EXTRACTION = "forced_extraction"


class ErrorKind(str, enum.Enum):
    """Why a candidate was rejected."""

    PARSE = "parse"
    VALIDATION = "validation"
    OTHER = "other"


@dataclass(frozen=True)
class HealingAttempt:
    """One rejected candidate.

    Attributes:
        index: 1-based failure number within one heal() call.
        kind: What rejected the candidate.
        message: Error text shown to the healer model.
        candidate: The candidate as it was when it failed.
        errors: Field-level validation messages (VALIDATION only).
    """

    index: int
    kind: ErrorKind
    message: str
    candidate: str
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class HealResult(Generic[T]):
    """Outcome of a successful heal.

    Attributes:
        value: The parsed (and, if possible, validated) value.
        heals: Healer invocations made (0 = first candidate was fine).
        history: Failures that preceded success.
    """

    value: T
    heals: int
    history: tuple[HealingAttempt, ...] = ()


class JsonHealer:
    """Extract, parse, validate and, when needed, repair JSON with a healer model.

    Args:
        completion: Service used for healer calls.
        healer_model: Model id for repair calls.
        max_attempts: Healer calls allowed per heal(). 0 disables repair:
            the first failure is terminal.
        max_tokens: Output-token ceiling for each healer call.
        notifications: Optional sink receiving ``on_healing`` events.

    Usage::

        healer = JsonHealer(client, healer_model="openai/gpt-4o-mini", max_attempts=2)
        data = healer.heal('Here is the JSON: {"name": "Bob",}', schema)
    """

    def __init__(
        self,
        completion: CompletionService,
        *,
        healer_model: str = DEFAULT_HEALER_MODEL,
        max_attempts: int = 2,
        max_tokens: int = DEFAULT_HEALER_MAX_TOKENS,
        notifications: NotificationSink | None = None,
    ) -> None:
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {max_attempts}")
        self._completion = completion
        self._healer_model = healer_model
        self._max_attempts = max_attempts
        self._max_tokens = max_tokens
        self._notifications = notifications

    @property
    def healer_model(self) -> str:
        return self._healer_model

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def heal(
        self,
        raw_text: str,
        schema: Schema,
        context: HealingContext | str = HealingContext.GENERIC,
    ) -> Any:
        """Return the healed value for raw_text.

        Raises:
            NoCandidateFoundError: Nothing JSON-like in raw_text, or raw_text
                is not a string.
            HealingExhaustedError: Budget spent without a valid candidate.
        """
        return self.run(raw_text, schema, context).value

    def run(
        self,
        raw_text: str,
        schema: Schema,
        context: HealingContext | str = HealingContext.GENERIC,
    ) -> HealResult:
        """Like heal(), but returns a HealResult with attempt metadata."""
        context = HealingContext(context)
        candidate = extract_json_candidate(raw_text)
        if candidate is None:
            raise NoCandidateFoundError()

        history: list[HealingAttempt] = []
        attempts = 0

        while True:
            value, failure = self._check(candidate, schema, attempts + 1)
            if failure is None:
                return HealResult(value=value, heals=attempts, history=tuple(history))

            attempts += 1
            history.append(failure)
            if attempts > self._max_attempts:
                raise HealingExhaustedError(
                    self._max_attempts, failure, tuple(history)
                )

            logger.debug(
                "Healing attempt %d/%d after %s error: %s",
                attempts,
                self._max_attempts,
                failure.kind.value,
                failure.message,
            )
            prompt = self._build_prompt(failure, candidate, raw_text, schema, context)
            candidate = self._invoke_healer(prompt, failure, schema, context)

    def _check(
        self, candidate: str, schema: Schema, index: int
    ) -> tuple[Any, HealingAttempt | None]:
        """Parse and validate one candidate. Returns (value, None) or (None, failure)."""
        try:
            value = json.loads(cleanup_syntax(candidate))
        except json.JSONDecodeError as exc:
            return None, HealingAttempt(index, ErrorKind.PARSE, str(exc), candidate)
        except RecursionError:
            return None, HealingAttempt(
                index, ErrorKind.OTHER, "JSON is nested too deeply to decode", candidate
            )

        if schema.validation_available and not schema.validate(value):
            errors = tuple(schema.validation_errors(value))
            return None, HealingAttempt(
                index,
                ErrorKind.VALIDATION,
                f"Schema validation failed: {', '.join(errors)}",
                candidate,
                errors,
            )
        return value, None

    def _build_prompt(
        self,
        failure: HealingAttempt,
        candidate: str,
        raw_text: str,
        schema: Schema,
        context: HealingContext,
    ) -> str:
        schema_json = json.dumps(schema.to_pure())

        # Only the first forced-extraction repair sees the full response.
        if context is HealingContext.FORCED_EXTRACTION and failure.index == 1:
            return build_forced_extraction_prompt(raw_text, schema_json, failure.message)
        if failure.kind is ErrorKind.PARSE:
            return build_json_syntax_prompt(candidate, failure.message)
        if failure.kind is ErrorKind.VALIDATION:
            return build_schema_validation_prompt(candidate, schema_json, failure.message)
        return build_generic_prompt(candidate, schema_json, failure.message)

    def _invoke_healer(
        self,
        prompt: str,
        failure: HealingAttempt,
        schema: Schema,
        context: HealingContext,
    ) -> str:
        """Ask the healer model for a new candidate. Returns the old one on failure."""
        broken = failure.candidate
        self._notify({
            "broken_json": broken,
            "error": failure.message,
            "schema": schema,
            "healer_model": self._healer_model,
            "context": context,
        })

        try:
            response = self._completion.complete(
                [{"role": "user", "content": prompt}],
                model=self._healer_model,
                extras={"temperature": 0.0, "max_tokens": self._max_tokens},
            )
            reply = response.content or ""
        except Exception as exc:
            error = HealerInvocationError(self._healer_model, exc)
            logger.warning("JSON healing request failed: %s", error)
            self._notify({"healed": False, "original": broken, "error": str(error)})
            return broken

        healed = extract_json_candidate(reply)
        if healed is None:
            healed = reply
        self._notify({"healed": True, "original": broken, "result": healed})
        return healed

    def _notify(self, payload: dict[str, Any]) -> None:
        if self._notifications is None:
            return
        try:
            self._notifications.emit(ON_HEALING, payload)
        except Exception as exc:
            logger.warning("Healing notification failed: %s", exc)
