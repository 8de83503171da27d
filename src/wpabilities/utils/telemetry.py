"""OpenTelemetry tracing helpers for the ability layer.

Thin wrapper around the OpenTelemetry API so the registry, pipeline and
MCP server can call ``get_tracer()`` without caring whether the SDK is
installed. Without a configured SDK the API hands out no-op tracers.

Usage::

    from wpabilities.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("ability.invoke") as span:
        span.set_attribute(ATTR_ABILITY_NAME, name)

Call :func:`configure_telemetry` once at startup to export real spans
(requires the ``otel`` extra: ``pip install wp-abilities[otel]``).
"""

from __future__ import annotations

import sys
from typing import Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys used throughout the instrumentation
# ---------------------------------------------------------------------------

ATTR_ABILITY_NAME = "wpabilities.ability.name"
ATTR_ABILITY_CATEGORY = "wpabilities.ability.category"
ATTR_USER_ID = "wpabilities.user.id"
ATTR_AUTHENTICATED = "wpabilities.user.authenticated"
ATTR_STATE = "wpabilities.invocation.state"
ATTR_SUCCESS = "wpabilities.invocation.success"
ATTR_ERROR_CODE = "wpabilities.invocation.error_code"
ATTR_TIMEOUT = "wpabilities.invocation.timeout"
ATTR_MCP_METHOD = "wpabilities.mcp.method"
ATTR_BATCH_SIZE = "wpabilities.batch.size"

_INSTRUMENTATION_NAME = "wpabilities"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "wpabilities",
    export_to_console: bool = False,
    otlp_endpoint: str | None = None,
) -> Any:
    """Install an SDK tracer provider for *service_name* and return it.

    Console spans go to stderr since stdout carries MCP traffic when
    serving. OTLP spans are batched to *otlp_endpoint* over gRPC.

    Raises :class:`ImportError` when ``wp-abilities[otel]`` is missing.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
    except ImportError as exc:
        msg = "opentelemetry-sdk is required for configure_telemetry(). Install it with: pip install wp-abilities[otel]"
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))  # pyright: ignore[reportUnknownVariableType,reportUnknownMemberType]
    for processor in _span_processors(export_to_console=export_to_console, otlp_endpoint=otlp_endpoint):
        provider.add_span_processor(processor)  # pyright: ignore[reportUnknownMemberType]
    trace.set_tracer_provider(provider)  # pyright: ignore[reportUnknownArgumentType]
    return provider


def _span_processors(*, export_to_console: bool, otlp_endpoint: str | None) -> list[Any]:
    from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    processors: list[Any] = []
    if export_to_console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter  # pyright: ignore[reportMissingImports,reportUnknownVariableType]
        except ImportError as exc:
            msg = "opentelemetry-exporter-otlp is required for OTLP export. Install it with: pip install wp-abilities[otel]"
            raise ImportError(msg) from exc
        processors.append(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    return processors
