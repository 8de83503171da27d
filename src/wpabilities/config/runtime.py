"""Wire a :class:`ServerConfig` into a ready-to-use ability runtime."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from wpabilities.abilities import register_default_abilities
from wpabilities.config.loader import ConfigLoader
from wpabilities.config.models import ServerConfig
from wpabilities.core.permissions import PermissionGate
from wpabilities.core.pipeline import InvocationPipeline
from wpabilities.core.registry import AbilityRegistry
from wpabilities.protocols.mcp.server import MCPServer
from wpabilities.store.memory import InMemoryContentStore
from wpabilities.utils.telemetry import configure_telemetry

if TYPE_CHECKING:
    from wpabilities.store.base import ContentStore

logger = logging.getLogger(__name__)


class AbilityRuntime:
    """Store, registry, pipeline and MCP server built from one config.

    Usage::

        runtime = AbilityRuntime.from_yaml("server.yaml")
        envelope = await runtime.pipeline.invoke("mcp-wp/test")

    Without an explicit *store* an :class:`InMemoryContentStore` is created
    and seeded from ``config.seed``.
    """

    def __init__(self, config: ServerConfig | None = None, *, store: ContentStore | None = None) -> None:
        self.config = config or ServerConfig()
        self.store = store if store is not None else self._build_store()
        self.registry = AbilityRegistry()
        register_default_abilities(self.registry, self.store)
        self.pipeline = InvocationPipeline(
            self.registry,
            PermissionGate(self.store),
            default_timeout=self.config.default_timeout,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> AbilityRuntime:
        """Load a config YAML and build the runtime from it."""
        return cls(ConfigLoader(Path(path)).load())

    def _build_store(self) -> InMemoryContentStore:
        settings = self.config.store
        store = InMemoryContentStore(
            with_defaults=settings.with_defaults,
            supports_patterns=settings.supports_patterns,
        )
        if self.config.seed:
            store.load_fixtures(self.config.seed)
        return store

    def mcp_server(self) -> MCPServer:
        return MCPServer(
            self.pipeline,
            name=self.config.name,
            version=self.config.version,
            exposed=self.config.exposed_abilities,
            context=self.config.caller.to_context(),
        )

    def setup_telemetry(self) -> bool:
        """Configure tracing if enabled in the config. Returns whether it was."""
        telemetry = self.config.telemetry
        if telemetry is None or not telemetry.enabled:
            return False
        configure_telemetry(
            service_name=self.config.name,
            export_to_console=telemetry.console,
            otlp_endpoint=telemetry.otlp_endpoint,
        )
        logger.info("Telemetry enabled for %s", self.config.name)
        return True
