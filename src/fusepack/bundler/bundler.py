"""Walk a static ``require`` graph and emit a single self-contained Lua file.

:func:`bundle` starts at an entry file, scans it for module references,
resolves every literal reference through a :class:`ModuleResolver`, and
recurses depth-first in source order. Each file is included once, keyed by
its canonical path; a second name for an already-included file becomes an
alias rather than a second copy.

Non-literal references are handled by a :class:`DynamicReferencePolicy`
value instead of an exception: under ``WARN`` they are collected in
:attr:`BundleResult.warnings` and bundling continues, under ``ABORT`` the
walk stops and :attr:`BundleResult.failure` names the offending call.
Missing entry files and unresolvable literal references are always fatal
and raise :class:`~fusepack.exceptions.BundleGraphError`.

The emitted file is rendered from ``templates/bundle.lua.j2``: a runtime
shim with a name-keyed module table and a replacement ``require``, one
registration block per module (the entry module as ``__root``), alias
registrations, and finally a call that runs the entry module.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from fusepack.bundler.resolver import ModuleResolver
from fusepack.bundler.scanner import ModuleReference, scan_requires
from fusepack.exceptions import BundleGraphError
from fusepack.models import DynamicReferencePolicy, LuaVersion

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``bundler/templates/``)."""

ROOT_MODULE_NAME = "__root"


@dataclass(frozen=True)
class DynamicReference:
    """A non-literal ``require`` found while walking the graph."""

    module: str
    path: Path
    line: int
    column: int
    expression: str

    def describe(self) -> str:
        return (
            f"non-literal require in '{self.module}' at "
            f"{self.path}:{self.line}:{self.column}: {self.expression}"
        )


@dataclass(frozen=True)
class BundledModule:
    """One module included in a bundle, with its normalised source."""

    name: str
    path: Path
    source: str


@dataclass
class BundleResult:
    """Outcome of :func:`bundle`.

    ``source`` is ``None`` exactly when ``failure`` is set.
    """

    source: Optional[str]
    modules: list[BundledModule] = field(default_factory=list)
    aliases: dict[str, str] = field(default_factory=dict)
    warnings: list[DynamicReference] = field(default_factory=list)
    failure: Optional[DynamicReference] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def _lua_string(value: str) -> str:
    """Quote *value* as a double-quoted Lua string literal."""
    out = ['"']
    for ch in value:
        if ch in ('"', "\\"):
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\n")
        elif ord(ch) < 32 or ord(ch) == 127:
            out.append(f"\\{ord(ch):03d}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["lua_string"] = _lua_string
    return env


def read_module(path: Path) -> str:
    """Read a Lua file with ``\\n`` line endings and any shebang line removed.

    Bytes that are not valid UTF-8 are kept as surrogate escapes, so a
    Latin-1 comment survives the round trip into the bundle unchanged.

    Raises:
        BundleGraphError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as exc:
        raise BundleGraphError(f"Cannot read module {path}: {exc}") from exc
    if text.startswith("\ufeff"):
        text = text[1:]
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    if text.startswith("#"):
        newline = text.find("\n")
        text = "" if newline < 0 else "\n" + text[newline + 1:]
    return text


class _GraphWalker:
    def __init__(
        self,
        resolver: ModuleResolver,
        policy: DynamicReferencePolicy,
        lua_version: LuaVersion,
    ) -> None:
        self.resolver = resolver
        self.policy = policy
        self.lua_version = lua_version
        self.by_path: dict[Path, str] = {}
        self.result = BundleResult(source=None)

    def visit(self, name: str, path: Path) -> bool:
        """Include *path* under *name* and everything it requires.

        Returns ``False`` when the walk was stopped by the abort policy.
        """
        canonical = path.resolve()
        existing = self.by_path.get(canonical)
        if existing is not None:
            if existing != name and name not in self.result.aliases:
                logger.debug("Module '%s' is an alias of '%s'", name, existing)
                self.result.aliases[name] = existing
            return True

        self.by_path[canonical] = name
        source = read_module(path)
        self.result.modules.append(BundledModule(name, path, source))
        logger.debug("Including module '%s' from %s", name, path)

        for reference in scan_requires(source, str(path), self.lua_version):
            if not reference.is_literal:
                if not self._dynamic(name, path, reference):
                    return False
                continue
            assert reference.name is not None
            target = self.resolver.resolve(reference.name)
            if target is None:
                tried = "".join(f"\n\tno file '{c}'" for c in self.resolver.candidates(reference.name))
                raise BundleGraphError(
                    f"module '{reference.name}' not found "
                    f"(required by '{name}' at {path}:{reference.line}:{reference.column}):{tried}"
                )
            if not self.visit(reference.name, target):
                return False
        return True

    def _dynamic(self, name: str, path: Path, reference: ModuleReference) -> bool:
        found = DynamicReference(name, path, reference.line, reference.column, reference.expression)
        if self.policy == DynamicReferencePolicy.ABORT:
            self.result.failure = found
            return False
        self.result.warnings.append(found)
        return True


def bundle(
    entry_file: Path,
    search_paths: Sequence[str],
    *,
    root: Optional[Path] = None,
    policy: DynamicReferencePolicy = DynamicReferencePolicy.WARN,
    lua_version: LuaVersion = LuaVersion.LUAJIT,
) -> BundleResult:
    """Bundle *entry_file* and its static dependencies into one Lua source.

    Args:
        entry_file: The entry module.
        search_paths: ``package.path``-style templates tried in order.
        root: Directory relative templates are resolved against. Defaults to
            the current directory.
        policy: What to do with non-literal ``require`` calls.
        lua_version: Dialect accepted by the scanner.

    Returns:
        A :class:`BundleResult`. On success ``source`` holds the bundle and
        ``warnings`` any dynamic references tolerated under ``WARN``; under
        ``ABORT`` a dynamic reference yields ``source=None`` and ``failure``.

    Raises:
        BundleGraphError: If the entry file does not exist or a literal
            reference resolves against none of the search paths.
        BundleSyntaxError: If a module cannot be tokenised.
    """
    entry_file = Path(entry_file)
    if not entry_file.is_file():
        raise BundleGraphError(f"Entry file not found: {entry_file}")

    resolver = ModuleResolver(root if root is not None else Path.cwd(), search_paths)
    walker = _GraphWalker(resolver, policy, lua_version)
    if not walker.visit(ROOT_MODULE_NAME, entry_file):
        return walker.result

    template = _environment().get_template("bundle.lua.j2")
    walker.result.source = template.render(
        modules=[
            {"name": module.name, "body": module.source.rstrip("\n")}
            for module in walker.result.modules
        ],
        aliases=sorted(walker.result.aliases.items()),
        root_name=ROOT_MODULE_NAME,
    )
    return walker.result
