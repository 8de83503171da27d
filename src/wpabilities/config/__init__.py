"""Server configuration: YAML models, loader and runtime wiring."""

from wpabilities.config.errors import ConfigValidationError
from wpabilities.config.loader import ConfigLoader
from wpabilities.config.models import (
    CallerSettings,
    ServerConfig,
    StoreSettings,
    TelemetrySettings,
)
from wpabilities.config.runtime import AbilityRuntime

__all__ = [
    "AbilityRuntime",
    "CallerSettings",
    "ConfigLoader",
    "ConfigValidationError",
    "ServerConfig",
    "StoreSettings",
    "TelemetrySettings",
]
