"""External tool integration: child-process runner, linter, and test harness."""

from fusepack.tools.harness import discover_tests, lua_search_path, run_tests
from fusepack.tools.lint import LintOutcome, run_lint
from fusepack.tools.runner import find_tool, run_tool

__all__ = [
    "LintOutcome",
    "discover_tests",
    "find_tool",
    "lua_search_path",
    "run_lint",
    "run_tests",
    "run_tool",
]
