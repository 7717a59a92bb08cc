"""Locate the per-user Fusion plugin root on each supported OS.

DaVinci Resolve reads user scripts from a fixed directory whose location
depends on the operating system:

==========  =============================================================
``darwin``  ``~/Library/Application Support/<Vendor>/<App>/Fusion``
``linux``   ``~/.local/share/<LinuxApp>/Fusion``
``win32``   ``%APPDATA%/<Vendor>/<App>/Fusion``
==========  =============================================================

:func:`platform_plugin_root` is a pure function of the OS identifier, the
home directory, and (on Windows) ``APPDATA``; it never touches the
filesystem. Callers create directories before writing.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from fusepack.exceptions import ConfigError, UnsupportedPlatformError
from fusepack.models import HostConfig

_SYSTEM_ALIASES = {
    "darwin": "darwin",
    "macos": "darwin",
    "linux": "linux",
    "linux2": "linux",
    "win32": "win32",
    "windows": "win32",
}


def normalize_system(system: str) -> str:
    """Map ``sys.platform`` / ``platform.system()`` spellings to a canonical identifier.

    Unknown identifiers are returned lower-cased and unchanged so the error
    message shows what the caller passed.
    """
    return _SYSTEM_ALIASES.get(system.lower(), system.lower())


def platform_plugin_root(
    host: Optional[HostConfig] = None,
    system: Optional[str] = None,
    home: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """Return the absolute directory where the host application looks for user plugins.

    Args:
        host: Vendor/application names. Defaults to DaVinci Resolve.
        system: OS identifier. Defaults to :data:`sys.platform`.
        home: Home directory. Defaults to :meth:`Path.home`.
        environ: Environment mapping. Defaults to :data:`os.environ`.

    Raises:
        UnsupportedPlatformError: If *system* is not macOS, Linux or Windows.
        ConfigError: On Windows when ``APPDATA`` is unset or empty.
    """
    host = host or HostConfig()
    raw_system = system if system is not None else sys.platform
    canonical = normalize_system(raw_system)

    if canonical == "darwin":
        base = home if home is not None else Path.home()
        return base / "Library" / "Application Support" / host.vendor / host.app / host.subdir
    if canonical == "linux":
        base = home if home is not None else Path.home()
        return base / ".local" / "share" / host.linux_app / host.subdir
    if canonical == "win32":
        if environ is None:
            environ = os.environ
        appdata = environ.get("APPDATA", "")
        if not appdata:
            raise ConfigError(
                "APPDATA is not set; cannot locate the Fusion root path on Windows"
            )
        return Path(appdata) / host.vendor / host.app / host.subdir

    raise UnsupportedPlatformError(raw_system)
