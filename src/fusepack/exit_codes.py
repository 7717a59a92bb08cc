"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~fusepack.exceptions.FusepackError` subclass.
CI scripts and editor integrations can inspect the exit code to tell a
broken configuration from a failing linter without parsing stderr.

Example::

    $ fusepack build --strict
    $ echo $?
    6   # EXIT_DYNAMIC_REFERENCE -- a non-literal require was found
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_ERROR = 2
"""The configuration is invalid or the platform is not supported."""

EXIT_TOOL_MISSING = 3
"""A required external tool (linter, interpreter) is not on ``PATH``."""

EXIT_TOOL_FAILED = 4
"""An external tool exited with a fatal status or timed out."""

EXIT_BUNDLE_ERROR = 5
"""The module graph could not be built (missing entry, unresolved require)."""

EXIT_DYNAMIC_REFERENCE = 6
"""A non-literal ``require`` was found while the abort policy was active."""

EXIT_INSTALL_ERROR = 7
"""Copying into or removing from the plugin directory failed."""
