"""Tests for ConfigLoader and ServerConfig."""

from __future__ import annotations

from pathlib import Path

import pytest

from wpabilities.config import ConfigLoader, ConfigValidationError, ServerConfig
from wpabilities.core.permissions import CallerContext

FULL_CONFIG = """\
name: demo-site
version: "1.2.3"
log_level: info
default_timeout: 5
exposed_abilities:
  - mcp-wp/test
  - mcp-wp/get-page
caller:
  user_id: 1
  roles: [administrator]
store:
  supports_patterns: false
telemetry:
  enabled: true
  otlp_endpoint: http://localhost:4317
seed:
  options:
    blogname: Seeded
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "server.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestConfigLoader:
    def test_full_config(self, tmp_path: Path) -> None:
        config = ConfigLoader(_write(tmp_path, FULL_CONFIG)).load()
        assert config.name == "demo-site"
        assert config.version == "1.2.3"
        assert config.log_level == "INFO"
        assert config.default_timeout == 5
        assert config.exposed_abilities == ["mcp-wp/test", "mcp-wp/get-page"]
        assert config.caller.to_context() == CallerContext(user_id=1, roles=frozenset({"administrator"}))
        assert config.store.supports_patterns is False
        assert config.telemetry is not None
        assert config.telemetry.otlp_endpoint == "http://localhost:4317"
        assert config.seed["options"]["blogname"] == "Seeded"

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        config = ConfigLoader(_write(tmp_path, "")).load()
        assert config == ServerConfig()
        assert config.exposed_abilities is None
        assert not config.caller.to_context().is_authenticated

    def test_env_interpolation(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WPA_SITE_NAME", "from-env")
        config = ConfigLoader(_write(tmp_path, "name: ${WPA_SITE_NAME}\n")).load()
        assert config.name == "from-env"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError, match="Cannot read"):
            ConfigLoader(tmp_path / "missing.yaml").load()

    def test_bad_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError, match="YAML parse error"):
            ConfigLoader(_write(tmp_path, "name: [unclosed\n")).load()

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError, match="mapping"):
            ConfigLoader(_write(tmp_path, "- a\n- b\n")).load()

    @pytest.mark.parametrize(
        "text",
        ["default_timeout: 0\n", "log_level: loud\n", "caller:\n  user_id: nobody\n"],
    )
    def test_schema_errors(self, tmp_path: Path, text: str) -> None:
        with pytest.raises(ConfigValidationError):
            ConfigLoader(_write(tmp_path, text)).load()


class TestExampleConfig:
    def test_example_config_loads(self) -> None:
        path = Path(__file__).parents[2] / "server.example.yaml"
        config = ConfigLoader(path).load()
        assert config.name == "demo-site"
        assert config.caller.to_context().user_id == 1
        assert "mcp-wp/get-site-stats" in (config.exposed_abilities or [])
        assert config.seed["options"]["blogname"] == "Demo Site"
