"""Tests for project configuration loading, precedence and the data directory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from fusepack.config import (
    atomic_write,
    find_project_config,
    get_data_dir,
    load_project_config,
    resolve_config,
)
from fusepack.exceptions import ConfigError
from fusepack.models import DynamicReferencePolicy, LuaVersion, ProjectConfig


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


# ------------------------------------------------------------------ #
# Data directory
# ------------------------------------------------------------------ #


class TestDataDir:
    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("fusepack.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
        result = get_data_dir()
        assert result == tmp_path / "xdg" / "fusepack"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("fusepack.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_data_dir() == tmp_path / ".local" / "share" / "fusepack"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("fusepack.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_data_dir() == tmp_path / ".fusepack"


class TestAtomicWrite:
    def test_replaces_content_without_leftovers(self, tmp_path: Path) -> None:
        target = tmp_path / "state" / "installed-dirs.json"
        atomic_write(target, "first\n")
        atomic_write(target, "second\n")
        assert target.read_text(encoding="utf-8") == "second\n"
        assert [p.name for p in target.parent.iterdir()] == ["installed-dirs.json"]


# ------------------------------------------------------------------ #
# Project file
# ------------------------------------------------------------------ #


class TestProjectFile:
    def test_find_prefers_json(self, tmp_path: Path) -> None:
        (tmp_path / "fusepack.yaml").write_text("lib_dir: vendor\n")
        (tmp_path / "fusepack.json").write_text("{}")
        assert find_project_config(tmp_path) == tmp_path / "fusepack.json"

    def test_find_returns_none_without_file(self, tmp_path: Path) -> None:
        assert find_project_config(tmp_path) is None

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "fusepack.yml"
        path.write_text("lua_version: '5.1'\nlint:\n  cache: false\n")
        assert load_project_config(path) == {"lua_version": "5.1", "lint": {"cache": False}}

    def test_load_empty_yaml_is_empty_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "fusepack.yaml"
        path.write_text("")
        assert load_project_config(path) == {}

    def test_load_invalid_json_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "fusepack.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config(path)

    def test_load_non_mapping_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "fusepack.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="top level must be a mapping"):
            load_project_config(path)

    def test_load_missing_file_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_project_config(tmp_path / "nope.json")


# ------------------------------------------------------------------ #
# Precedence
# ------------------------------------------------------------------ #


class TestResolveConfig:
    def test_defaults_without_project_file(self, tmp_path: Path) -> None:
        config = resolve_config(project_root=tmp_path)
        assert config.root == tmp_path.resolve()
        assert config.lua_version == LuaVersion.LUAJIT
        assert config.policy == DynamicReferencePolicy.WARN
        assert config.search_paths == ["src/?.lua", "lib/?.lua"]
        assert list(config.distributables) == ["Scripts/Utility/Voice Hopper.lua"]
        assert config.distributables["Scripts/Utility/Voice Hopper.lua"].entry == "main.lua"

    def test_project_file_overrides_defaults(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "fusepack.json", {
            "lib_dir": "vendor",
            "distributables": {"Scripts/Comp/Tool.lua": {"kind": "bundle", "entry": "tool.lua"}},
        })
        config = resolve_config(project_root=tmp_path)
        assert config.lib_dir == "vendor"
        assert list(config.distributables) == ["Scripts/Comp/Tool.lua"]

    def test_env_overrides_project_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(tmp_path / "fusepack.json", {"lua_version": "5.1", "policy": "warn"})
        monkeypatch.setenv("FUSEPACK_LUA_VERSION", "5.4")
        monkeypatch.setenv("FUSEPACK_POLICY", "abort")
        config = resolve_config(project_root=tmp_path)
        assert config.lua_version == LuaVersion.LUA_54
        assert config.policy == DynamicReferencePolicy.ABORT

    def test_cli_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FUSEPACK_LUA_VERSION", "5.4")
        config = resolve_config(project_root=tmp_path, cli_lua_version="5.2", cli_timeout=3.0)
        assert config.lua_version == LuaVersion.LUA_52
        assert config.tool_timeout == 3.0

    def test_explicit_config_relative_to_root(self, tmp_path: Path) -> None:
        (tmp_path / "conf").mkdir()
        (tmp_path / "conf" / "alt.yaml").write_text("staging_dir: out\n")
        config = resolve_config(project_root=tmp_path, cli_config=Path("conf/alt.yaml"))
        assert config.staging_path == tmp_path.resolve() / "out"

    def test_env_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        alt = tmp_path / "elsewhere.json"
        _write_json(alt, {"source_dir": "lua"})
        monkeypatch.setenv("FUSEPACK_CONFIG", str(alt))
        assert resolve_config(project_root=tmp_path).source_dir == "lua"

    def test_invalid_enum_names_its_source(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FUSEPACK_POLICY", "explode")
        with pytest.raises(ConfigError, match="FUSEPACK_POLICY"):
            resolve_config(project_root=tmp_path)

    def test_invalid_field_raises_config_error(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "fusepack.json", {"search_paths": ["src/main.lua"]})
        with pytest.raises(ConfigError, match="placeholder"):
            resolve_config(project_root=tmp_path)

    def test_unknown_recipe_kind_is_accepted_at_load(self, tmp_path: Path) -> None:
        _write_json(tmp_path / "fusepack.json", {"distributables": {"x.lua": {"kind": "minify"}}})
        config = resolve_config(project_root=tmp_path)
        assert config.distributables["x.lua"].kind == "minify"


class TestProjectConfigModel:
    @pytest.mark.parametrize("output", ["/abs/path.lua", "../escape.lua", "Scripts/../../x.lua", ""])
    def test_distributable_must_stay_inside_plugin_root(self, output: str) -> None:
        with pytest.raises(ValueError):
            ProjectConfig(distributables={output: {"kind": "bundle", "entry": "main.lua"}})

    def test_config_is_frozen(self) -> None:
        config = ProjectConfig()
        with pytest.raises(ValueError):
            config.lib_dir = "vendor"  # type: ignore[misc]

    def test_tool_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            ProjectConfig(tool_timeout=0)
