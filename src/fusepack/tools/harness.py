"""Run Lua test scripts with an external interpreter.

Each file matched by the configured glob (``test/**/*.lua`` by default) is
run on its own, in sorted order, with the interpreter's module search
variable pointing at the source and library directories so tests can
``require`` project modules directly. The first failing file stops the run.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import pathspec

from fusepack.exceptions import ToolExecutionError
from fusepack.models import ProjectConfig
from fusepack.output import info, success, warning
from fusepack.tools.runner import run_tool

_ALWAYS_SKIP = {".git", ".luacheckcache", "node_modules"}


def lua_search_path(config: ProjectConfig) -> str:
    """``LUA_PATH`` value: source dir, lib dir, then Lua's default path (``;;``)."""
    return f"{config.source_dir}/?.lua;{config.lib_dir}/?.lua;;"


def discover_tests(config: ProjectConfig) -> list[Path]:
    """Return test files matching ``config.harness.pattern``, relative to the root, sorted."""
    spec = pathspec.PathSpec.from_lines("gitwildmatch", [config.harness.pattern])
    staging = config.staging_dir
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(config.root):
        rel_dir = os.path.relpath(dirpath, config.root)
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in _ALWAYS_SKIP and not (rel_dir == "." and d == staging)
        )
        for fname in filenames:
            rel_path = fname if rel_dir == "." else os.path.join(rel_dir, fname)
            if spec.match_file(rel_path.replace(os.sep, "/")):
                found.append(Path(rel_path))
    return sorted(found, key=lambda p: p.as_posix())


def run_tests(config: ProjectConfig, timeout: Optional[float] = None) -> int:
    """Run every discovered test file and return how many ran.

    Raises:
        ToolMissingError: If the interpreter is not installed.
        ToolExecutionError: If a test file exits with a non-zero status.
    """
    tests = discover_tests(config)
    if not tests:
        warning(f"No test files match {config.harness.pattern}.")
        return 0

    env = dict(os.environ)
    env[config.harness.path_variable] = lua_search_path(config)
    interpreter = list(config.harness.interpreter)

    for test in tests:
        info(f"Running {test.as_posix()}")
        code = run_tool(
            [*interpreter, test.as_posix()],
            cwd=config.root,
            env=env,
            timeout=timeout or config.tool_timeout,
        )
        if code != 0:
            raise ToolExecutionError(
                f"{test.as_posix()} failed with exit status {code}", returncode=code
            )

    success(f"{len(tests)} test file(s) passed.")
    return len(tests)
