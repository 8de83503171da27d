"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import wpabilities

    assert wpabilities.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from wpabilities.cli import main

    assert callable(main)


def test_lazy_import_from_package() -> None:
    import wpabilities

    assert wpabilities.AbilityRuntime is not None
    assert wpabilities.AbilityRegistry is not None
    assert wpabilities.InvocationPipeline is not None
