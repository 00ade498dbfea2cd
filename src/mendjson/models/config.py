"""Configuration models for mendjson.

ClientConfig holds per-client settings: transport, healing defaults, and
the structured-output policy. StructuredOutputMode selects how
Response.structured_output() treats failures.
"""

from __future__ import annotations

import enum
import os
from typing import Optional

from pydantic import BaseModel, Field

from mendjson.llm.client import DEFAULT_BASE_URL, DEFAULT_MODEL


class StructuredOutputMode(str, enum.Enum):
    """How Response.structured_output() handles failures.

    - ``STRICT``: validate, optionally heal, raise StructuredOutputError.
    - ``GENTLE``: best-effort parse, no validation or healing, None on failure.
    """

    STRICT = "strict"
    GENTLE = "gentle"


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


class ClientConfig(BaseModel):
    """Per-client configuration.

    Healing is off by default; turn it on globally with
    ``auto_heal_responses=True`` or per call with
    ``structured_output(auto_heal=True)``.
    """

    model_config = {"validate_assignment": True}

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 120.0
    max_retries: int = Field(default=3, ge=1)
    extra_headers: dict[str, str] = Field(default_factory=dict)
    default_model: str = DEFAULT_MODEL

    # Client-side healing
    auto_heal_responses: bool = False
    healer_model: str = "openai/gpt-4o-mini"
    max_heal_attempts: int = Field(default=2, ge=0)
    healer_max_tokens: int = Field(default=4000, ge=1)

    # Provider-side healing plugin for non-streaming structured outputs
    auto_native_healing: bool = True

    # Structured output policy
    force_structured_output: bool = False
    default_structured_output_mode: StructuredOutputMode = StructuredOutputMode.STRICT

    @classmethod
    def from_env(cls, **overrides) -> ClientConfig:
        """Build a config from ``MENDJSON_*`` environment variables.

        Keyword overrides take precedence over the environment.
        """
        values: dict = {
            "api_key": os.environ.get("MENDJSON_API_KEY") or None,
            "base_url": os.environ.get("MENDJSON_BASE_URL", DEFAULT_BASE_URL),
            "auto_heal_responses": _env_bool("MENDJSON_AUTO_HEAL", False),
            "healer_model": os.environ.get("MENDJSON_HEALER_MODEL", "openai/gpt-4o-mini"),
            "max_heal_attempts": int(os.environ.get("MENDJSON_MAX_HEAL_ATTEMPTS", "2")),
            "auto_native_healing": _env_bool("MENDJSON_AUTO_NATIVE_HEALING", True),
            "force_structured_output": _env_bool("MENDJSON_FORCE_STRUCTURED_OUTPUT", False),
            "default_structured_output_mode": os.environ.get("MENDJSON_DEFAULT_MODE", "strict"),
        }
        values.update(overrides)
        return cls(**values)
