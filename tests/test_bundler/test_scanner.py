"""Tests for finding require calls in Lua source."""

from __future__ import annotations

import pytest

from fusepack.bundler.scanner import scan_requires
from fusepack.exceptions import BundleSyntaxError
from fusepack.models import LuaVersion


class TestLiteralReferences:
    @pytest.mark.parametrize(
        "source",
        [
            'require "json"',
            "require 'json'",
            "require [[json]]",
            'require("json")',
            "require ( 'json' )",
        ],
    )
    def test_call_forms(self, source: str) -> None:
        (ref,) = scan_requires(source)
        assert ref.is_literal
        assert ref.name == "json"

    def test_source_order_and_positions(self) -> None:
        refs = scan_requires('local a = require("a")\n  local b = require "b.c"\n')
        assert [(r.name, r.line, r.column) for r in refs] == [("a", 1, 11), ("b.c", 2, 13)]

    def test_expression_is_original_spelling(self) -> None:
        (ref,) = scan_requires("x = require ( 'json' )")
        assert ref.expression == "require ( 'json' )"


class TestDynamicReferences:
    @pytest.mark.parametrize(
        "source",
        [
            'require("locale." .. lang)',
            "require(name)",
            'require { "table" }',
            'require(("json"))',
            "require()",
        ],
    )
    def test_non_literal_calls(self, source: str) -> None:
        (ref,) = scan_requires(source)
        assert not ref.is_literal
        assert ref.name is None
        assert ref.expression == source


class TestNotReferences:
    @pytest.mark.parametrize(
        "source",
        [
            'obj.require("x")',
            'obj:require("x")',
            "local r = require",
            '-- require("x")',
            '--[[ require("x") ]]',
            "print(\"require('x')\")",
            'local s = [[require("x")]]',
            "local function require(name) return name end",
            "function require(...) end",
        ],
    )
    def test_ignored(self, source: str) -> None:
        assert scan_requires(source) == []


def test_mixed_module() -> None:
    source = 'local a = require("a")\nlocal m = require(mod)\nreturn require "b"\n'
    refs = scan_requires(source)
    assert [(r.name, r.is_literal) for r in refs] == [("a", True), (None, False), ("b", True)]


def test_dialect_errors_propagate() -> None:
    with pytest.raises(BundleSyntaxError, match="lib/x.lua:1:"):
        scan_requires("return 7 // 2", path="lib/x.lua", version=LuaVersion.LUA_51)


def test_require_defined_then_called() -> None:
    source = 'local function require(name)\n  return name\nend\nreturn require("x")\n'
    refs = scan_requires(source)
    assert [(r.name, r.line) for r in refs] == [("x", 4)]
