"""Typer application and CLI entry point for fusepack.

This module wires together the top-level Typer application and registers
the task commands (``clean``, ``build``, ``install``, ``uninstall``,
``watch``, ``lint``, ``test``, ``config``, ``where``). Running ``fusepack``
with no command builds the project.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~fusepack.exceptions.FusepackError` exits with the error's code;
any other exception is written to a crash log under the data directory.

See Also:
    :mod:`fusepack.config`: Project configuration resolution.
    :mod:`fusepack.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from fusepack import __version__
from fusepack.commands.build import (
    build_command,
    clean_command,
    lint_command,
    run_build,
    test_command,
)
from fusepack.commands.config import config_command
from fusepack.commands.install import (
    install_command,
    uninstall_command,
    watch_command,
    where_command,
)
from fusepack.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="fusepack",
    help="Bundle, lint, test, and install Lua scripts for DaVinci Resolve Fusion.",
    invoke_without_command=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("clean")(clean_command)
app.command("build")(build_command)
app.command("install")(install_command)
app.command("uninstall")(uninstall_command)
app.command("watch")(watch_command)
app.command("lint")(lint_command)
app.command("test")(test_command)
app.command("config")(config_command)
app.command("where")(where_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fusepack {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Route the ``fusepack`` logger to stderr; DEBUG with ``--verbose``."""
    logger = logging.getLogger("fusepack")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(file=sys.stderr, no_color=no_color),
        show_time=False,
        show_path=False,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    project: Optional[Path] = typer.Option(
        None, "--project", "-C", help="Project root directory. [default: .]",
        file_okay=False, dir_okay=True,
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Project config file (JSON or YAML)."
    ),
    lua_version: Optional[str] = typer.Option(
        None, "--lua-version", help="Lua dialect: 5.1, 5.2, 5.3, 5.4 or LuaJIT."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every command.

    Initialises the global :class:`~fusepack.output.OutputManager` and the
    ``fusepack`` logger from CLI flags, and stores the project options in
    the Typer context for the commands. Without a command, builds.
    """
    from fusepack.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
    )
    set_output(output)
    _configure_logging(verbose, no_color)

    ctx.ensure_object(dict)
    ctx.obj["project"] = project
    ctx.obj["config_file"] = config_file
    ctx.obj["lua_version"] = lua_version
    ctx.obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        run_build(ctx)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from fusepack.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``fusepack`` console script.

    Unhandled :class:`~fusepack.exceptions.FusepackError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from fusepack.exceptions import FusepackError
        from fusepack.output import error

        if isinstance(exc, FusepackError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
