"""Tests for onionhttp.config: XDG paths, config files, env, and precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from onionhttp.config import (
    get_config_dir,
    load_env_config,
    load_project_config,
    load_user_config,
    resolve_client_config,
)
from onionhttp.exceptions import ConfigError
from onionhttp.models import ClientConfig


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user config dir and the working directory into *tmp_path*."""
    monkeypatch.setattr("onionhttp.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ("ONIONHTTP_PREFIX", "ONIONHTTP_TIMEOUT", "ONIONHTTP_VERIFY_SSL"):
        monkeypatch.delenv(name, raising=False)
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return tmp_path


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestConfigDir:
    def test_xdg_config_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("onionhttp.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / "onionhttp"

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("onionhttp.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "onionhttp"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("onionhttp.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".onionhttp"

    def test_directory_is_not_created(self, isolated: Path) -> None:
        assert not get_config_dir().exists()


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestConfigFiles:
    def test_missing_files_give_empty_dicts(self, isolated: Path) -> None:
        assert load_user_config() == {}
        assert load_project_config() == {}

    def test_user_config(self, isolated: Path) -> None:
        _write_json(isolated / "xdg" / "onionhttp" / "config.json", {"prefix": "https://user"})
        assert load_user_config() == {"prefix": "https://user"}

    def test_project_config(self, isolated: Path) -> None:
        _write_json(isolated / "project" / "onionhttp.json", {"timeout": 4})
        assert load_project_config() == {"timeout": 4}

    def test_invalid_json(self, isolated: Path) -> None:
        (isolated / "project" / "onionhttp.json").write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_non_object_json(self, isolated: Path) -> None:
        _write_json(isolated / "xdg" / "onionhttp" / "config.json", ["a"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_user_config()


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class TestEnvConfig:
    def test_reads_variables(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ONIONHTTP_PREFIX", "https://env")
        monkeypatch.setenv("ONIONHTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("ONIONHTTP_VERIFY_SSL", "no")
        assert load_env_config() == {
            "prefix": "https://env",
            "timeout": 2.5,
            "verify_ssl": False,
        }

    def test_empty_variables_are_skipped(
        self, isolated: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ONIONHTTP_PREFIX", "")
        assert load_env_config() == {}

    def test_bad_timeout(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ONIONHTTP_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="ONIONHTTP_TIMEOUT"):
            load_env_config()

    def test_bad_boolean(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ONIONHTTP_VERIFY_SSL", "maybe")
        with pytest.raises(ConfigError, match="ONIONHTTP_VERIFY_SSL"):
            load_env_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveClientConfig:
    def test_defaults(self, isolated: Path) -> None:
        assert resolve_client_config() == ClientConfig()

    def test_precedence(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(
            isolated / "xdg" / "onionhttp" / "config.json",
            {"prefix": "https://user", "timeout": 1, "suffix": ".json"},
        )
        _write_json(isolated / "project" / "onionhttp.json", {"prefix": "https://project", "timeout": 2})
        monkeypatch.setenv("ONIONHTTP_TIMEOUT", "3")

        config = resolve_client_config(prefix="https://cli", timeout=None)
        assert config.prefix == "https://cli"
        assert config.timeout == 3
        assert config.suffix == ".json"

    def test_headers_merge_across_layers(self, isolated: Path) -> None:
        _write_json(isolated / "xdg" / "onionhttp" / "config.json", {"headers": {"a": "1", "b": "1"}})
        _write_json(isolated / "project" / "onionhttp.json", {"headers": {"b": "2"}})
        assert resolve_client_config().headers == {"a": "1", "b": "2"}

    def test_unknown_keys_are_kept(self, isolated: Path) -> None:
        _write_json(isolated / "project" / "onionhttp.json", {"tenant": "acme"})
        assert resolve_client_config().model_extra == {"tenant": "acme"}

    def test_invalid_values(self, isolated: Path) -> None:
        _write_json(isolated / "project" / "onionhttp.json", {"timeout": -1})
        with pytest.raises(ConfigError, match="Invalid client configuration"):
            resolve_client_config()
