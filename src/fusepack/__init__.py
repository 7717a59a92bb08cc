"""fusepack -- Bundle, lint, test, and install Lua scripts for DaVinci Resolve Fusion.

A Fusion script usually ships as a single ``.lua`` file dropped into the
host application's per-user ``Scripts`` directory. This package turns a
multi-module Lua project (an entry module under ``src/`` plus libraries
under ``lib/``) into that single file and moves it into place.

Typical workflow::

    fusepack lint        # run luacheck over src/ and lib/
    fusepack test        # run every test/*.lua file with luajit
    fusepack install     # build, then copy into the Fusion plugin root
    fusepack watch       # reinstall whenever src/ or lib/ changes

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic configuration models.
    config: Project configuration loading and precedence resolution.
    platforms: Per-OS location of the Fusion plugin root.
    bundler: Static ``require`` graph walker and single-file emitter.
    build: Build orchestrator (lint, clean, bundle).
    install: Install/uninstall into the plugin root.
    watch: Polling watcher that serialises reinstalls.
    tools: Child-process runner, linter and test harness integration.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
