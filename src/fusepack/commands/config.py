"""Config command -- show the effective project configuration.

Prints the fully resolved :class:`~fusepack.models.ProjectConfig` (defaults,
project file, environment and flags merged) so it is easy to see which
value won.
"""

from __future__ import annotations

import os

import typer

from fusepack.commands.common import load_config, reported_errors
from fusepack.output import format_response, info


def config_command(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Example::

        fusepack config
        fusepack --json config
    """
    from fusepack.config import ENV_CONFIG, find_project_config

    with reported_errors():
        config = load_config(ctx)
    source = (
        ctx.ensure_object(dict).get("config_file")
        or os.environ.get(ENV_CONFIG)
        or find_project_config(config.root)
    )
    info(f"Project root: {config.root}")
    info(f"Config file: {source if source is not None else '(defaults)'}")
    format_response(config.model_dump(mode="json"))
