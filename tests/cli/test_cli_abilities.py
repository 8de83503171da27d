"""Tests for ``wpabilities abilities`` CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from wpabilities.cli import main


class TestAbilitiesList:
    def test_table(self) -> None:
        result = CliRunner().invoke(main, ["abilities", "list"])
        assert result.exit_code == 0
        assert "Registered Abilities" in result.output
        assert "mcp-wp/test" in result.output

    def test_json(self) -> None:
        result = CliRunner().invoke(main, ["abilities", "list", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data) == 46
        assert data[0]["name"] == "mcp-wp/test"

    def test_no_internal_abilities(self) -> None:
        result = CliRunner().invoke(main, ["abilities", "list", "--visibility", "internal"])
        assert result.exit_code == 0
        assert "No abilities found" in result.output

    def test_category_filter(self) -> None:
        result = CliRunner().invoke(main, ["abilities", "list", "--category", "nope", "--format", "json"])
        assert json.loads(result.stdout) == []

    def test_bad_config(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("default_timeout: -1\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["abilities", "list", "--config", str(path)])
        assert result.exit_code == 1
        assert "Config error" in result.output


class TestAbilitiesDescribe:
    def test_describe(self) -> None:
        result = CliRunner().invoke(main, ["abilities", "describe", "mcp-wp/create-page"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["permission"] == "capability:edit_pages"
        assert data["input_schema"]["required"] == ["title", "content"]

    def test_describe_missing(self) -> None:
        result = CliRunner().invoke(main, ["abilities", "describe", "mcp-wp/nope"])
        assert result.exit_code == 1
        assert "Ability not found" in result.output
