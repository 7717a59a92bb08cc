"""Built-in CLI commands for fusepack.

Each task is a plain callback registered directly on the root app:

* :mod:`~fusepack.commands.build` -- ``clean``, ``build``, ``lint``, ``test``.
* :mod:`~fusepack.commands.install` -- ``install``, ``uninstall``, ``watch``,
  ``where``.
* :mod:`~fusepack.commands.config` -- ``config``.
"""
