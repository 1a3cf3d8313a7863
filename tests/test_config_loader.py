"""Tests for timeline_sync.config_loader -- YAML discovery and merging."""

import pytest
import yaml

from timeline_sync.config_loader import (
    CONFIG_ENV_VAR,
    _interpolate_recursive,
    discover_config_files,
    interpolate_env_vars,
    load_hierarchical_config,
)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run in an empty CWD with a fake HOME and no explicit config path."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("API_HOST", "timeline.local")
        assert interpolate_env_vars("https://${API_HOST}/api") == "https://timeline.local/api"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}") == "fallback"

    def test_empty_env_var_uses_default(self, monkeypatch):
        monkeypatch.setenv("EMPTY_VAR", "")
        assert interpolate_env_vars("${EMPTY_VAR:-fallback}") == "fallback"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("DB_PATH", "/data/timeline.db")
        data = {"local": {"local_db": "${DB_PATH}", "n": 5}, "list": ["${DB_PATH}", 1]}
        assert _interpolate_recursive(data) == {
            "local": {"local_db": "/data/timeline.db", "n": 5},
            "list": ["/data/timeline.db", 1],
        }

    def test_literal_dollar_brace_no_closing(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"


# -------------------------------------------------------------------------
# Convention-based file discovery
# -------------------------------------------------------------------------


class TestDiscoverConfigFiles:
    """Tests for discover_config_files() precedence and filtering."""

    def test_empty_filesystem_returns_empty(self, isolated):
        assert discover_config_files() == []

    def test_env_var_takes_highest_precedence(self, isolated, monkeypatch):
        custom = _write(isolated / "custom.yml", "remote: {}\n")
        _write(isolated / ".timeline_sync" / "config.yml", "remote: {}\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))

        result = discover_config_files()
        assert result[0] == custom.resolve()
        assert len(result) == 2

    def test_project_before_global(self, isolated):
        project = _write(isolated / ".timeline_sync" / "config.yml", "a: 1\n")
        global_cfg = _write(
            isolated / "home" / ".config" / "timeline_sync" / "config.yml", "b: 2\n"
        )

        result = discover_config_files()
        assert result == [project, global_cfg]

    def test_missing_env_path_ignored(self, isolated, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(isolated / "missing.yml"))
        assert discover_config_files() == []


# -------------------------------------------------------------------------
# Hierarchical merge
# -------------------------------------------------------------------------


class TestLoadHierarchicalConfig:
    """Tests for load_hierarchical_config() merge and interpolation."""

    def test_no_files_returns_empty(self, isolated):
        assert load_hierarchical_config() == {}

    def test_project_section_wins(self, isolated):
        _write(
            isolated / "home" / ".config" / "timeline_sync" / "config.yml",
            "remote:\n  api_url: https://global.example.com\nlocal:\n  local_db: g.db\n",
        )
        _write(
            isolated / ".timeline_sync" / "config.yml",
            "remote:\n  api_url: https://project.example.com\n",
        )

        result = load_hierarchical_config()
        assert result["remote"] == {"api_url": "https://project.example.com"}
        assert result["local"] == {"local_db": "g.db"}

    def test_interpolation_applied(self, isolated, monkeypatch):
        monkeypatch.setenv("PROD_API", "https://prod.example.com/api")
        _write(isolated / ".timeline_sync" / "config.yml", "remote:\n  api_url: ${PROD_API}\n")
        assert load_hierarchical_config()["remote"]["api_url"] == "https://prod.example.com/api"

    def test_non_mapping_root_skipped(self, isolated):
        _write(isolated / ".timeline_sync" / "config.yml", "- just\n- a list\n")
        assert load_hierarchical_config() == {}

    def test_invalid_yaml_raises(self, isolated):
        _write(isolated / ".timeline_sync" / "config.yml", "remote: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config()
