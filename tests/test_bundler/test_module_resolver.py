"""Tests for resolving module names against search templates."""

from __future__ import annotations

from pathlib import Path

from fusepack.bundler.resolver import ModuleResolver


def test_candidates_replace_dots_and_placeholders(tmp_path: Path) -> None:
    resolver = ModuleResolver(tmp_path, ["src/?.lua", "lib/?/init.lua"])
    assert resolver.candidates("ui.window") == [
        tmp_path / "src/ui/window.lua",
        tmp_path / "lib/ui/window/init.lua",
    ]


def test_first_existing_template_wins(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "lib").mkdir()
    (tmp_path / "src" / "json.lua").write_text("return {}")
    (tmp_path / "lib" / "json.lua").write_text("return {}")
    resolver = ModuleResolver(tmp_path, ["src/?.lua", "lib/?.lua"])
    assert resolver.resolve("json") == tmp_path / "src" / "json.lua"


def test_falls_through_to_later_templates(tmp_path: Path) -> None:
    (tmp_path / "lib" / "net").mkdir(parents=True)
    (tmp_path / "lib" / "net" / "init.lua").write_text("return {}")
    resolver = ModuleResolver(tmp_path, ["src/?.lua", "lib/?.lua", "lib/?/init.lua"])
    assert resolver.resolve("net") == tmp_path / "lib" / "net" / "init.lua"


def test_directories_do_not_match(tmp_path: Path) -> None:
    (tmp_path / "src" / "thing.lua").mkdir(parents=True)
    resolver = ModuleResolver(tmp_path, ["src/?.lua"])
    assert resolver.resolve("thing") is None


def test_unresolved_returns_none(tmp_path: Path) -> None:
    assert ModuleResolver(tmp_path, ["src/?.lua"]).resolve("missing") is None


def test_templates_are_copied(tmp_path: Path) -> None:
    templates = ["src/?.lua"]
    resolver = ModuleResolver(tmp_path, templates)
    templates.append("lib/?.lua")
    assert resolver.templates == ["src/?.lua"]
