"""mendjson exception hierarchy.

All mendjson-specific exceptions inherit from MendError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mendjson.healing import HealingAttempt


class MendError(Exception):
    """Base exception for all mendjson errors."""


class StructuredOutputError(MendError):
    """Structured output could not be produced.

    This is the single user-visible failure type for structured output.
    Catch it to handle both "no JSON found" and "healing gave up".
    """


class NoCandidateFoundError(StructuredOutputError):
    """Raised when no JSON-like content could be extracted from a response."""

    def __init__(self, message: str = "No JSON-like content found in the response.") -> None:
        super().__init__(message)


class HealingExhaustedError(StructuredOutputError):
    """All healing attempts failed.

    Attributes:
        max_attempts: The configured healing budget.
        last_attempt: The failure recorded after the final healer call.
        history: Every failure recorded during the healing loop, in order.
    """

    def __init__(
        self,
        max_attempts: int,
        last_attempt: HealingAttempt,
        history: tuple[HealingAttempt, ...] = (),
    ) -> None:
        self.max_attempts = max_attempts
        self.last_attempt = last_attempt
        self.history = history
        message = (
            f"Failed to heal JSON after {max_attempts} healing attempts. "
            f"Last error: {last_attempt.message}"
        )
        if last_attempt.errors:
            message += f". Last errors: {', '.join(last_attempt.errors)}"
        super().__init__(message)


class HealerInvocationError(MendError):
    """The secondary healer completion call failed.

    Caught inside the healing loop and treated as a round without progress.
    """

    def __init__(self, healer_model: str, cause: BaseException) -> None:
        self.healer_model = healer_model
        self.cause = cause
        super().__init__(f"Healer model '{healer_model}' failed: {cause}")
