"""Pydantic models for the server config YAML consumed by the CLI."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from wpabilities.core.permissions import CallerContext

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None
    console: bool = False


class CallerSettings(BaseModel):
    """The caller every MCP request is served as. Anonymous by default."""

    user_id: int | None = None
    roles: list[str] = []
    capabilities: list[str] = []

    def to_context(self) -> CallerContext:
        return CallerContext(
            user_id=self.user_id,
            roles=frozenset(self.roles),
            capabilities=frozenset(self.capabilities),
        )


class StoreSettings(BaseModel):
    """Options for the in-memory content store."""

    with_defaults: bool = True
    supports_patterns: bool = True


class ServerConfig(BaseModel):
    """Top-level server configuration parsed from YAML."""

    name: str = "wpabilities"
    version: str = "0.1.0"
    exposed_abilities: list[str] | None = None
    default_timeout: float | None = Field(default=None, gt=0)
    log_level: LogLevel = "WARNING"
    caller: CallerSettings = Field(default_factory=CallerSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    telemetry: TelemetrySettings | None = None
    seed: dict[str, Any] = {}

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value
