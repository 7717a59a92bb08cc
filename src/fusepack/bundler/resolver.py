"""Resolve Lua module names against ``package.path``-style templates.

Each template contains one or more ``?`` placeholders that are replaced by
the module name with dots turned into directory separators, exactly like
Lua's own searcher::

    ModuleResolver(root, ["src/?.lua", "lib/?.lua", "lib/?/init.lua"])
    resolver.resolve("ui.window")   # src/ui/window.lua, lib/ui/window.lua, ...

The first template that names an existing file wins.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ModuleResolver:
    """Map module names to files using an ordered list of search templates.

    Args:
        root: Directory that relative templates are resolved against.
        templates: Search templates in priority order.
    """

    def __init__(self, root: Path, templates: Sequence[str]) -> None:
        self._root = root
        self._templates = list(templates)

    @property
    def templates(self) -> list[str]:
        return list(self._templates)

    def candidates(self, name: str) -> list[Path]:
        """Every path the resolver would try for *name*, in order."""
        relative = name.replace(".", "/")
        return [self._root / template.replace("?", relative) for template in self._templates]

    def resolve(self, name: str) -> Optional[Path]:
        """Return the first existing file for *name*, or ``None``."""
        for candidate in self.candidates(name):
            if candidate.is_file():
                logger.debug("Resolved module '%s' to %s", name, candidate)
                return candidate
            logger.debug("Module '%s' not at %s", name, candidate)
        return None
