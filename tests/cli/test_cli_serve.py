"""Tests for ``wpabilities serve`` and the root command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from wpabilities.cli import main


class TestServe:
    def test_serve_runs_stdio_server(self) -> None:
        with patch("wpabilities.protocols.mcp.transport.StdioServer") as mock_cls:
            mock_cls.return_value.serve = AsyncMock()
            result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 0
        mock_cls.return_value.serve.assert_awaited_once()
        server = mock_cls.call_args[0][0]
        assert len(server.tool_definitions()) == 46
        assert result.output == ""

    def test_serve_sets_up_telemetry(self, tmp_path: Path) -> None:
        path = tmp_path / "server.yaml"
        path.write_text("telemetry:\n  enabled: true\n", encoding="utf-8")
        with (
            patch("wpabilities.protocols.mcp.transport.StdioServer") as mock_cls,
            patch("wpabilities.config.runtime.configure_telemetry") as configure,
        ):
            mock_cls.return_value.serve = AsyncMock()
            result = CliRunner().invoke(main, ["serve", "--config", str(path)])

        assert result.exit_code == 0
        configure.assert_called_once()


class TestRoot:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        for command in ("abilities", "invoke", "serve"):
            assert command in result.output

    def test_log_level_option(self) -> None:
        result = CliRunner().invoke(main, ["--log-level", "debug", "invoke", "mcp-wp/test"])
        assert result.exit_code == 0
