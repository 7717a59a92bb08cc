"""Project configuration loading and precedence resolution.

This module turns the scattered sources of settings into one frozen
:class:`~fusepack.models.ProjectConfig`:

* **Project file** -- ``fusepack.json``, ``fusepack.yaml`` or
  ``fusepack.yml`` in the project root (first found wins), or an explicit
  path from ``--config`` / ``FUSEPACK_CONFIG``. See
  :func:`find_project_config` and :func:`load_project_config`.
* **Environment** -- ``FUSEPACK_LUA_VERSION`` and ``FUSEPACK_POLICY``.
* **CLI flags** -- passed in by the command layer.
* **Data directory** -- XDG-aware location for crash logs, see
  :func:`get_data_dir`.

Precedence (high to low) is CLI flags, environment, project file, defaults.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from fusepack.exceptions import ConfigError
from fusepack.models import DynamicReferencePolicy, LuaVersion, ProjectConfig

_APP_NAME = "fusepack"
_PROJECT_CONFIG_FILENAMES = ("fusepack.json", "fusepack.yaml", "fusepack.yml")

ENV_CONFIG = "FUSEPACK_CONFIG"
ENV_LUA_VERSION = "FUSEPACK_LUA_VERSION"
ENV_POLICY = "FUSEPACK_POLICY"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/fusepack/`` (default ``~/.local/share/fusepack/``).
    On macOS/Windows: ``~/.fusepack/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* through a temp file in the same directory and a rename.

    Readers see either the old or the new content, never a partial file. On
    any failure the temp file is removed and the error propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Project file ---


def find_project_config(root: Path) -> Optional[Path]:
    """Return the first project config file present in *root*, or ``None``."""
    for name in _PROJECT_CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_project_config(path: Path) -> dict[str, Any]:
    """Parse a JSON or YAML project file into a plain dict.

    The format is chosen from the file extension; ``.yaml``/``.yml`` use
    :func:`yaml.safe_load`, everything else is read as JSON.

    Raises:
        ConfigError: If the file is missing, unparseable, or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: top level must be a mapping")
    return data


# --- Precedence resolution ---


def _enum_value(enum_cls: type, raw: str, source: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigError(f"Invalid value {raw!r} from {source} (expected one of: {allowed})") from None


def resolve_config(
    project_root: Optional[Path] = None,
    cli_config: Optional[Path] = None,
    cli_lua_version: Optional[str] = None,
    cli_policy: Optional[str] = None,
    cli_timeout: Optional[float] = None,
) -> ProjectConfig:
    """Resolve the effective :class:`ProjectConfig` for this invocation.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments)
        2. Environment variables (``FUSEPACK_CONFIG``, ``FUSEPACK_LUA_VERSION``,
           ``FUSEPACK_POLICY``)
        3. Project file in *project_root*
        4. Defaults

    Args:
        project_root: Project directory. Defaults to the current directory.
        cli_config: Explicit config file path.
        cli_lua_version: Lua dialect override.
        cli_policy: Dynamic-reference policy override (``warn`` or ``abort``).
        cli_timeout: External tool timeout in seconds.

    Returns:
        The frozen configuration with ``root`` set to the absolute project root.

    Raises:
        ConfigError: If any source holds an invalid value.
    """
    root = (project_root or Path.cwd()).resolve()

    config_path: Optional[Path] = None
    env_config = os.environ.get(ENV_CONFIG)
    if cli_config is not None:
        config_path = cli_config
    elif env_config:
        config_path = Path(env_config)
    if config_path is not None and not config_path.is_absolute():
        config_path = root / config_path
    if config_path is None:
        config_path = find_project_config(root)

    data: dict[str, Any] = {}
    if config_path is not None:
        data = load_project_config(config_path)

    env_lua = os.environ.get(ENV_LUA_VERSION)
    if env_lua:
        data["lua_version"] = _enum_value(LuaVersion, env_lua, ENV_LUA_VERSION)
    env_policy = os.environ.get(ENV_POLICY)
    if env_policy:
        data["policy"] = _enum_value(DynamicReferencePolicy, env_policy, ENV_POLICY)

    if cli_lua_version is not None:
        data["lua_version"] = _enum_value(LuaVersion, cli_lua_version, "--lua-version")
    if cli_policy is not None:
        data["policy"] = _enum_value(DynamicReferencePolicy, cli_policy, "--policy")
    if cli_timeout is not None:
        data["tool_timeout"] = cli_timeout

    data["root"] = root
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        where = config_path if config_path is not None else "defaults"
        raise ConfigError(f"Invalid configuration ({where}): {exc}") from exc
