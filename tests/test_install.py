"""Tests for installing into and uninstalling from the plugin root."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from fusepack.exceptions import UnsupportedPlatformError
from fusepack.install import install, install_destinations, uninstall
from fusepack.models import ProjectConfig

OUTPUT = "Scripts/Utility/Voice Hopper.lua"


def _tree(root: Path) -> set[str]:
    return {
        os.path.relpath(os.path.join(dirpath, name), root)
        for dirpath, dirnames, filenames in os.walk(root)
        for name in dirnames + filenames
    }


class TestInstall:
    def test_copies_staged_files(self, project_config: ProjectConfig, plugin_root: Path, quiet_output) -> None:
        installed = install(project_config, lint=False, plugin_root=plugin_root)
        target = plugin_root / OUTPUT
        assert installed == [target]
        assert target.read_bytes() == (project_config.staging_path / OUTPUT).read_bytes()

    def test_overwrites_existing_file(self, project_config: ProjectConfig, plugin_root: Path, quiet_output) -> None:
        target = plugin_root / OUTPUT
        target.parent.mkdir(parents=True)
        target.write_text("old version")
        install(project_config, lint=False, plugin_root=plugin_root)
        assert "__bundle_require" in target.read_text(encoding="utf-8")

    def test_dry_run_changes_nothing(self, project_config: ProjectConfig, plugin_root: Path, capsys) -> None:
        planned = install(project_config, dry_run=True, plugin_root=plugin_root)
        assert planned == [plugin_root / OUTPUT]
        assert list(plugin_root.iterdir()) == []
        assert not project_config.staging_path.exists()
        assert "Would install" in capsys.readouterr().err

    def test_unsupported_platform_fails_before_building(
        self, project_config: ProjectConfig, monkeypatch: pytest.MonkeyPatch, quiet_output
    ) -> None:
        monkeypatch.setattr("sys.platform", "sunos5")
        with pytest.raises(UnsupportedPlatformError):
            install(project_config, lint=False)
        assert not project_config.staging_path.exists()


class TestUninstall:
    def test_install_then_uninstall_restores_tree(
        self, project_config: ProjectConfig, plugin_root: Path, quiet_output
    ) -> None:
        (plugin_root / "Scripts" / "Comp").mkdir(parents=True)
        (plugin_root / "Scripts" / "Comp" / "Other.lua").write_text("keep me")
        before = _tree(plugin_root)

        install(project_config, lint=False, plugin_root=plugin_root)
        removed = uninstall(project_config, plugin_root=plugin_root)

        assert removed == [plugin_root / OUTPUT]
        assert _tree(plugin_root) == before
        assert (plugin_root / "Scripts" / "Comp" / "Other.lua").read_text() == "keep me"

    def test_existing_empty_directories_are_kept(
        self, project_config: ProjectConfig, plugin_root: Path, quiet_output
    ) -> None:
        (plugin_root / "Scripts" / "Utility").mkdir(parents=True)
        before = _tree(plugin_root)

        install(project_config, lint=False, plugin_root=plugin_root)
        uninstall(project_config, plugin_root=plugin_root)

        assert _tree(plugin_root) == before == {"Scripts", "Scripts/Utility"}

    def test_created_plugin_root_is_removed_again(
        self, project_config: ProjectConfig, tmp_path: Path, quiet_output
    ) -> None:
        root = tmp_path / "Blackmagic Design" / "Fusion"
        install(project_config, lint=False, plugin_root=root)
        assert (root / OUTPUT).is_file()
        uninstall(project_config, plugin_root=root)
        assert not (tmp_path / "Blackmagic Design").exists()

    def test_directories_shared_by_outputs(self, lua_project: Path, plugin_root: Path, quiet_output) -> None:
        config = ProjectConfig(root=lua_project, distributables={
            "Scripts/Comp/A.lua": {"kind": "bundle", "entry": "main.lua"},
            "Scripts/Comp/Tools/B.lua": {"kind": "bundle", "entry": "main.lua"},
        })
        install(config, lint=False, plugin_root=plugin_root)
        uninstall(config, plugin_root=plugin_root)
        assert _tree(plugin_root) == set()

    def test_user_files_keep_created_directories(
        self, project_config: ProjectConfig, plugin_root: Path, quiet_output
    ) -> None:
        install(project_config, lint=False, plugin_root=plugin_root)
        (plugin_root / "Scripts" / "Utility" / "Mine.lua").write_text("mine")
        uninstall(project_config, plugin_root=plugin_root)
        assert _tree(plugin_root) == {"Scripts", "Scripts/Utility", "Scripts/Utility/Mine.lua"}

    def test_plugin_root_itself_is_kept(
        self, project_config: ProjectConfig, plugin_root: Path, quiet_output
    ) -> None:
        install(project_config, lint=False, plugin_root=plugin_root)
        uninstall(project_config, plugin_root=plugin_root)
        assert plugin_root.is_dir()
        assert list(plugin_root.iterdir()) == []

    def test_uninstall_twice_is_harmless(
        self, project_config: ProjectConfig, plugin_root: Path, capsys
    ) -> None:
        install(project_config, lint=False, plugin_root=plugin_root)
        uninstall(project_config, plugin_root=plugin_root)
        assert uninstall(project_config, plugin_root=plugin_root) == []
        assert "Nothing to uninstall." in capsys.readouterr().err

    def test_uninstall_without_plugin_root(self, project_config: ProjectConfig, tmp_path: Path, quiet_output) -> None:
        missing = tmp_path / "never-created"
        assert uninstall(project_config, plugin_root=missing) == []
        assert not missing.exists()

    def test_dry_run_keeps_files(self, project_config: ProjectConfig, plugin_root: Path, quiet_output) -> None:
        install(project_config, lint=False, plugin_root=plugin_root)
        assert uninstall(project_config, dry_run=True, plugin_root=plugin_root) == [plugin_root / OUTPUT]
        assert (plugin_root / OUTPUT).is_file()


def test_install_destinations_follow_declaration_order(lua_project: Path, plugin_root: Path) -> None:
    config = ProjectConfig(root=lua_project, distributables={
        "Scripts/Comp/B.lua": {"kind": "bundle", "entry": "main.lua"},
        "Scripts/Comp/A.lua": {"kind": "bundle", "entry": "main.lua"},
    })
    assert install_destinations(config, plugin_root) == [
        plugin_root / "Scripts/Comp/B.lua",
        plugin_root / "Scripts/Comp/A.lua",
    ]
