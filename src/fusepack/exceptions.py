"""Exception hierarchy for fusepack.

All exceptions inherit from :class:`FusepackError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`fusepack.exit_codes`.
The top-level error handler in :func:`fusepack.app.main` catches
``FusepackError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    FusepackError (exit 1)
    +-- ConfigError                 (exit 2)
    |   +-- UnsupportedPlatformError (exit 2)
    +-- ToolMissingError            (exit 3)
    +-- ToolExecutionError          (exit 4)
    |   +-- ToolTimeoutError        (exit 4)
    +-- BundleGraphError            (exit 5)
    |   +-- BundleSyntaxError       (exit 5)
    +-- DynamicReferenceError       (exit 6)
    +-- InstallError                (exit 7)
"""

from __future__ import annotations

from typing import Optional

from fusepack.exit_codes import (
    EXIT_BUNDLE_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_DYNAMIC_REFERENCE,
    EXIT_GENERIC_FAILURE,
    EXIT_INSTALL_ERROR,
    EXIT_TOOL_FAILED,
    EXIT_TOOL_MISSING,
)


class FusepackError(Exception):
    """Base exception for all fusepack errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`fusepack.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(FusepackError):
    """Raised for configuration problems (invalid files, unknown recipe kinds, missing env vars)."""

    exit_code = EXIT_CONFIG_ERROR


class UnsupportedPlatformError(ConfigError):
    """Raised when the plugin root cannot be located on the running OS."""

    def __init__(self, system: str):
        super().__init__(
            f"Don't know how to locate the Fusion root path on this platform: {system}"
        )
        self.system = system


class ToolMissingError(FusepackError):
    """Raised when an external executable cannot be found on ``PATH``."""

    exit_code = EXIT_TOOL_MISSING

    def __init__(self, tool: str):
        super().__init__(f"'{tool}' was not found on PATH")
        self.tool = tool


class ToolExecutionError(FusepackError):
    """Raised when an external tool exits with a status the caller treats as fatal."""

    exit_code = EXIT_TOOL_FAILED

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class ToolTimeoutError(ToolExecutionError):
    """Raised when an external tool runs longer than its timeout and is killed."""


class BundleGraphError(FusepackError):
    """Raised when the module graph cannot be built (missing entry, unresolved require)."""

    exit_code = EXIT_BUNDLE_ERROR


class BundleSyntaxError(BundleGraphError):
    """Raised when a Lua module cannot be tokenised for the selected dialect.

    Args:
        message: Description of the problem.
        path: File being scanned.
        line: 1-based line of the offending character.
        column: 1-based column of the offending character.
    """

    def __init__(self, message: str, path: str, line: int, column: int):
        super().__init__(f"{path}:{line}:{column}: {message}")
        self.path = path
        self.line = line
        self.column = column


class DynamicReferenceError(FusepackError):
    """Raised when a bundle is aborted because of a non-literal ``require``."""

    exit_code = EXIT_DYNAMIC_REFERENCE


class InstallError(FusepackError):
    """Raised when copying to or removing from the plugin root fails."""

    exit_code = EXIT_INSTALL_ERROR
