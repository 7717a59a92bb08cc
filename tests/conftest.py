"""Shared test fixtures for fusepack.

Provides a small Lua project on disk, an isolated plugin root, config
isolation from the developer's environment, and a CLI runner. These
fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

from fusepack.models import ProjectConfig
from fusepack.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep FUSEPACK_* variables and the real data directory out of tests."""
    for var in ["FUSEPACK_CONFIG", "FUSEPACK_LUA_VERSION", "FUSEPACK_POLICY"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


# ---------------------------------------------------------------------------
# Lua project fixtures
# ---------------------------------------------------------------------------


def write_lua(root: Path, relative: str, source: str) -> Path:
    """Write dedented Lua *source* to ``root/relative``, creating parents."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def lua_writer():
    """Expose :func:`write_lua` to test modules."""
    return write_lua


@pytest.fixture
def lua_project(tmp_path: Path) -> Path:
    """A project whose entry requires ``a`` and ``b``, where ``a`` also requires ``b``."""
    root = tmp_path / "project"
    write_lua(root, "src/main.lua", """
        local a = require("a")
        local b = require "b"
        print(a.name, b.name)
    """)
    write_lua(root, "src/a.lua", """
        local b = require("b")
        return { name = "a", dep = b }
    """)
    write_lua(root, "lib/b.lua", """
        return { name = "b" }
    """)
    return root


@pytest.fixture
def project_config(lua_project: Path) -> ProjectConfig:
    """Default configuration rooted at :func:`lua_project`, with linting pointed at nothing."""
    return ProjectConfig(root=lua_project, lint={"command": ["fusepack-no-such-linter"]})


@pytest.fixture
def plugin_root(tmp_path: Path) -> Path:
    """An empty directory standing in for the Fusion plugin root."""
    root = tmp_path / "Fusion"
    root.mkdir()
    return root


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``Path.home()`` and the XDG data directory at *tmp_path*."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("APPDATA", str(home / "AppData"))
    return home


# ---------------------------------------------------------------------------
# Tool fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def python_tool(tmp_path: Path):
    """Factory for an executable script that runs Python code.

    ``python_tool("luacheck", "import sys; sys.exit(1)")`` creates
    ``<tmp>/bin/luacheck`` and returns its directory, suitable for
    prepending to ``PATH``.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(name: str, code: str) -> Path:
        script = bin_dir / name
        script.write_text(f"#!{sys.executable}\n{code}\n", encoding="utf-8")
        script.chmod(0o755)
        return bin_dir

    return _make


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for tests that ignore output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
