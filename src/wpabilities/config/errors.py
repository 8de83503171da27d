"""Configuration error types."""

from __future__ import annotations


class ConfigValidationError(Exception):
    """Raised when a server config file cannot be read, parsed or validated."""
