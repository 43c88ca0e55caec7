"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a configured value is unusable, such as a numeric surrogate id prefix."""
