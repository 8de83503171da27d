"""wpabilities: content-management abilities exposed as schema-validated MCP tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from wpabilities.config.runtime import AbilityRuntime as AbilityRuntime
    from wpabilities.core.pipeline import InvocationPipeline as InvocationPipeline
    from wpabilities.core.registry import AbilityRegistry as AbilityRegistry

_LAZY_EXPORTS = {
    "AbilityRuntime": "wpabilities.config.runtime",
    "AbilityRegistry": "wpabilities.core.registry",
    "InvocationPipeline": "wpabilities.core.pipeline",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'wpabilities' has no attribute {name!r}")
