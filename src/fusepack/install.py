"""Install built distributables into the Fusion plugin root, and remove them again.

``install`` runs a full build and copies every staged file to the same
relative path under :func:`~fusepack.platforms.platform_plugin_root`,
creating directories and overwriting existing files. ``uninstall`` deletes
those files if present; a missing file is not an error, so uninstalling
twice is harmless.

Directories that ``install`` had to create are recorded per plugin root in
``installed-dirs.json`` in the data directory (see
:func:`~fusepack.config.get_data_dir`). ``uninstall`` removes those again
once they are empty and leaves every other directory alone, so an install
followed by an uninstall leaves the tree as it was.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Optional

from fusepack.build import build
from fusepack.config import atomic_write, get_data_dir
from fusepack.exceptions import InstallError
from fusepack.models import DynamicReferencePolicy, ProjectConfig
from fusepack.output import info, success
from fusepack.platforms import platform_plugin_root

logger = logging.getLogger(__name__)

_MANIFEST_FILENAME = "installed-dirs.json"


def install_destinations(config: ProjectConfig, plugin_root: Optional[Path] = None) -> list[Path]:
    """Absolute install path of every distributable, in declaration order."""
    root = plugin_root if plugin_root is not None else platform_plugin_root(config.host)
    return [root / output for output in config.distributables]


# --- Created-directory manifest ---


def _manifest_path() -> Path:
    return get_data_dir() / _MANIFEST_FILENAME


def _load_manifest() -> dict[str, list[str]]:
    path = _manifest_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable install manifest %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _save_manifest(manifest: dict[str, list[str]]) -> None:
    path = _manifest_path()
    try:
        atomic_write(path, json.dumps(manifest, indent=2, sort_keys=True) + "\n")
    except OSError as exc:
        raise InstallError(f"Cannot record installed directories in {path}: {exc}") from exc


def _missing_directories(directory: Path) -> list[Path]:
    """*directory* and its ancestors that do not exist yet, outermost first."""
    missing: list[Path] = []
    while not directory.exists() and directory.parent != directory:
        missing.append(directory)
        directory = directory.parent
    return missing[::-1]


def _record_created(root: Path, created: list[Path]) -> None:
    manifest = _load_manifest()
    recorded = manifest.setdefault(str(root.absolute()), [])
    for directory in created:
        if str(directory.absolute()) not in recorded:
            recorded.append(str(directory.absolute()))
    _save_manifest(manifest)


def _remove_created(root: Path) -> None:
    """Remove the now-empty directories ``install`` created under *root*."""
    manifest = _load_manifest()
    recorded = manifest.pop(str(root.absolute()), None)
    if recorded is None:
        return
    for directory in sorted(map(Path, recorded), key=lambda p: len(p.parts), reverse=True):
        try:
            directory.rmdir()
        except OSError:
            continue
        logger.debug("Removed directory %s", directory)
    _save_manifest(manifest)


def install(
    config: ProjectConfig,
    lint: bool = True,
    policy: Optional[DynamicReferencePolicy] = None,
    timeout: Optional[float] = None,
    dry_run: bool = False,
    plugin_root: Optional[Path] = None,
) -> list[Path]:
    """Build, then copy every staged distributable into the plugin root.

    The plugin root is resolved before anything is built, so an unsupported
    platform fails without side effects.

    Args:
        config: Project configuration.
        lint: Lint before building.
        policy: Dynamic-reference policy override for the build.
        timeout: External tool timeout.
        dry_run: Report what would be installed without building or copying.
        plugin_root: Override the platform plugin root.

    Returns:
        The installed (or, in dry-run mode, would-be installed) paths.

    Raises:
        InstallError: If a file cannot be copied.
    """
    root = plugin_root if plugin_root is not None else platform_plugin_root(config.host)
    destinations = install_destinations(config, root)
    if dry_run:
        for destination in destinations:
            info(f"Would install: {destination}")
        return destinations

    build(config, lint=lint, policy=policy, timeout=timeout)

    created: list[Path] = []
    try:
        for output, destination in zip(config.distributables, destinations):
            source = config.staging_path / output
            missing = _missing_directories(destination.parent)
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, destination)
            except OSError as exc:
                raise InstallError(f"Cannot install {source} to {destination}: {exc}") from exc
            finally:
                created.extend(directory for directory in missing if directory.is_dir())
            success(f"Installed: {destination}")
    finally:
        if created:
            _record_created(root, created)
    return destinations


def uninstall(
    config: ProjectConfig,
    dry_run: bool = False,
    plugin_root: Optional[Path] = None,
) -> list[Path]:
    """Delete every installed distributable that exists.

    Returns:
        The paths that were removed (or would be, in dry-run mode).

    Raises:
        InstallError: If an existing file cannot be removed.
    """
    root = plugin_root if plugin_root is not None else platform_plugin_root(config.host)
    removed: list[Path] = []
    for destination in install_destinations(config, root):
        if not destination.is_file():
            continue
        if dry_run:
            info(f"Would uninstall: {destination}")
        else:
            try:
                destination.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise InstallError(f"Cannot remove {destination}: {exc}") from exc
            success(f"Uninstalled: {destination}")
        removed.append(destination)

    if not dry_run:
        _remove_created(root)
    if not removed:
        info("Nothing to uninstall.")
    return removed
