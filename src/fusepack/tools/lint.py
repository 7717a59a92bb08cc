"""Run the external Lua linter (luacheck by default).

luacheck reports its verdict through the exit status:

* ``0`` -- no warnings or errors.
* ``1`` -- warnings only. Tolerated in permissive mode.
* anything else -- errors or a crash; always fatal.

The build runs the linter permissively and carries on when it is not
installed; ``fusepack lint`` on its own requires it.
"""

from __future__ import annotations

import enum
from typing import Optional

from fusepack.exceptions import ToolExecutionError, ToolMissingError
from fusepack.models import ProjectConfig
from fusepack.output import info, success, warning
from fusepack.tools.runner import run_tool

LINT_CLEAN = 0
LINT_WARNINGS = 1


class LintOutcome(str, enum.Enum):
    CLEAN = "clean"
    WARNINGS = "warnings"
    SKIPPED = "skipped"


def lint_targets(config: ProjectConfig) -> list[str]:
    """Configured lint targets that exist under the project root."""
    return [t for t in config.lint.targets if (config.root / t).exists()]


def lint_command(config: ProjectConfig, targets: list[str]) -> list[str]:
    """Build the linter argv: command, optional ``--cache``, then *targets*."""
    argv = list(config.lint.command)
    if config.lint.cache:
        argv.append("--cache")
    argv.extend(targets)
    return argv


def run_lint(
    config: ProjectConfig,
    permissive: bool = True,
    tolerate_missing: bool = False,
    timeout: Optional[float] = None,
) -> LintOutcome:
    """Lint the project's sources.

    Args:
        config: Project configuration.
        permissive: Treat a warnings-only exit status as success.
        tolerate_missing: Skip with a warning when the linter is not installed.
        timeout: Seconds before the linter is killed. Defaults to
            ``config.tool_timeout``.

    Raises:
        ToolMissingError: If the linter is missing and not tolerated.
        ToolExecutionError: On a fatal exit status (or warnings in strict mode).
    """
    targets = lint_targets(config)
    argv = lint_command(config, targets)
    tool = argv[0]
    if not targets:
        info("Nothing to lint.")
        return LintOutcome.SKIPPED

    info(f"Linting with {tool}...")
    try:
        code = run_tool(argv, cwd=config.root, timeout=timeout or config.tool_timeout)
    except ToolMissingError:
        if not tolerate_missing:
            raise
        warning(f"{tool} not found on PATH; skipping lint.")
        return LintOutcome.SKIPPED

    if code == LINT_CLEAN:
        success("Lint passed.")
        return LintOutcome.CLEAN
    if code == LINT_WARNINGS and permissive:
        warning(f"{tool} reported warnings.")
        return LintOutcome.WARNINGS
    if code == LINT_WARNINGS:
        raise ToolExecutionError(f"{tool} reported warnings", returncode=code)
    raise ToolExecutionError(f"{tool} failed with exit status {code}", returncode=code)
