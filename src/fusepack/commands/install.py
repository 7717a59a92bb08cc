"""Install commands -- ``install``, ``uninstall``, ``watch`` and ``where``.

All of them work relative to the platform plugin root computed by
:func:`~fusepack.platforms.platform_plugin_root`.
"""

from __future__ import annotations

from typing import Optional

import typer

from fusepack.commands.common import load_config, reported_errors
from fusepack.output import print_table, suggest


def install_command(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False, "--strict", help="Fail on non-literal require calls instead of warning."
    ),
    no_lint: bool = typer.Option(False, "--no-lint", help="Skip the lint step."),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Show what would be installed without doing it."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Seconds before an external tool is killed."
    ),
) -> None:
    """Build, then copy every distributable into the Fusion plugin directory.

    Example::

        fusepack install
        fusepack install --dry-run
    """
    from fusepack.install import install

    with reported_errors():
        config = load_config(ctx, policy="abort" if strict else None, timeout=timeout)
        install(config, lint=not no_lint, dry_run=dry_run)
    if not dry_run:
        suggest("Restart the Fusion page or rescan scripts to pick up the new version.")


def uninstall_command(
    ctx: typer.Context,
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Show what would be removed without doing it."
    ),
) -> None:
    """Remove installed distributables from the Fusion plugin directory.

    Files that are already gone are skipped, so running this twice is safe.
    """
    from fusepack.install import uninstall

    with reported_errors():
        config = load_config(ctx)
        uninstall(config, dry_run=dry_run)


def watch_command(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False, "--strict", help="Fail on non-literal require calls instead of warning."
    ),
    no_lint: bool = typer.Option(False, "--no-lint", help="Skip the lint step."),
    interval: Optional[float] = typer.Option(
        None, "--interval", min=0.05, help="Polling interval in seconds."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Seconds before an external tool is killed."
    ),
) -> None:
    """Install now, then reinstall whenever the watched sources change.

    Changes that arrive during an install are coalesced into a single
    follow-up install. Stop with Ctrl-C.
    """
    from fusepack.install import install
    from fusepack.platforms import platform_plugin_root
    from fusepack.watch import watch

    with reported_errors():
        config = load_config(ctx, policy="abort" if strict else None, timeout=timeout)
        # Fail fast on an unsupported platform instead of on every change.
        platform_plugin_root(config.host)

    def _install() -> None:
        install(config, lint=not no_lint)

    watch(
        config.root,
        config.watch.patterns,
        _install,
        interval=interval or config.watch.interval,
    )


def where_command(ctx: typer.Context) -> None:
    """Show the plugin root and where each distributable is installed."""
    from fusepack.install import install_destinations
    from fusepack.platforms import platform_plugin_root

    with reported_errors():
        config = load_config(ctx)
        root = platform_plugin_root(config.host)
        destinations = install_destinations(config, root)

    rows = [
        [output, recipe.kind, str(destination), "yes" if destination.is_file() else "no"]
        for (output, recipe), destination in zip(config.distributables.items(), destinations)
    ]
    print_table(
        ["output", "recipe", "destination", "installed"],
        rows,
        title=f"Plugin root: {root}",
    )
