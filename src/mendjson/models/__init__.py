"""Configuration models."""

from mendjson.models.config import ClientConfig, StructuredOutputMode

__all__ = ["ClientConfig", "StructuredOutputMode"]
