"""Build commands -- ``clean``, ``build``, ``lint`` and ``test``.

``build`` is also what runs when ``fusepack`` is invoked without a command.
"""

from __future__ import annotations

from typing import Optional

import typer

from fusepack.commands.common import load_config, reported_errors
from fusepack.output import info, success, suggest


def run_build(
    ctx: typer.Context,
    strict: bool = False,
    lint: bool = True,
    timeout: Optional[float] = None,
) -> None:
    """Shared body of ``fusepack build`` and the bare ``fusepack`` invocation."""
    from fusepack.build import build

    with reported_errors():
        config = load_config(ctx, policy="abort" if strict else None, timeout=timeout)
        report = build(config, lint=lint)
    if report.warnings:
        suggest("Use --strict to make non-literal requires fail the build.")


def clean_command(ctx: typer.Context) -> None:
    """Remove the staging directory.

    Example::

        fusepack clean
    """
    from fusepack.build import clean

    with reported_errors():
        config = load_config(ctx)
        removed = clean(config)
    if removed:
        success(f"Removed {config.staging_path}")
    else:
        info(f"Nothing to clean at {config.staging_path}")


def build_command(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False, "--strict", help="Fail on non-literal require calls instead of warning."
    ),
    no_lint: bool = typer.Option(False, "--no-lint", help="Skip the lint step."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Seconds before an external tool is killed."
    ),
) -> None:
    """Lint, clean the staging directory, and build every distributable.

    Example::

        fusepack build
        fusepack build --strict --no-lint
    """
    run_build(ctx, strict=strict, lint=not no_lint, timeout=timeout)


def lint_command(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False, "--strict", help="Treat linter warnings as a failure."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Seconds before the linter is killed."
    ),
) -> None:
    """Run the Lua linter over the source and library directories.

    Exit status 1 from the linter (warnings only) is accepted unless
    ``--strict`` is given. A missing linter is an error here, unlike in
    ``build``.
    """
    from fusepack.tools.lint import run_lint

    with reported_errors():
        config = load_config(ctx, timeout=timeout)
        run_lint(config, permissive=not strict, tolerate_missing=False)


def test_command(
    ctx: typer.Context,
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Seconds before each test run is killed."
    ),
) -> None:
    """Run each Lua test file with the configured interpreter.

    ``LUA_PATH`` is set so tests can require modules from ``src/`` and
    ``lib/``. Stops at the first failing file.
    """
    from fusepack.tools.harness import run_tests

    with reported_errors():
        config = load_config(ctx, timeout=timeout)
        run_tests(config)
