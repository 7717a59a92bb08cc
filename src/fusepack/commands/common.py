"""Helpers shared by the task commands.

:func:`load_config` resolves the project configuration from the root
callback's options plus any per-command overrides. :func:`reported_errors`
turns a :class:`~fusepack.exceptions.FusepackError` raised by a task into an
``Error:`` line on stderr and a ``typer.Exit`` carrying the error's exit code,
so every command reports failures the same way.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer

from fusepack.exceptions import FusepackError
from fusepack.models import ProjectConfig
from fusepack.output import error, suggest


def load_config(
    ctx: typer.Context,
    policy: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ProjectConfig:
    """Resolve the :class:`ProjectConfig` for this invocation."""
    from fusepack.config import resolve_config

    obj = ctx.ensure_object(dict)
    project: Optional[Path] = obj.get("project")
    return resolve_config(
        project_root=project,
        cli_config=obj.get("config_file"),
        cli_lua_version=obj.get("lua_version"),
        cli_policy=policy,
        cli_timeout=timeout,
    )


@contextmanager
def reported_errors() -> Iterator[None]:
    """Report a :class:`FusepackError` and exit with its code."""
    try:
        yield
    except FusepackError as exc:
        error(str(exc))
        hint = getattr(exc, "tool", None)
        if hint:
            suggest(f"Install {hint} or adjust the command in fusepack.json")
        raise typer.Exit(code=exc.exit_code) from None
