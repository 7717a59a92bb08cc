"""Lua module bundler.

Turns an entry module and its statically resolvable ``require`` graph into
one self-contained Lua file:

* :mod:`~fusepack.bundler.lexer` -- dialect-aware tokenizer.
* :mod:`~fusepack.bundler.scanner` -- finds literal and dynamic ``require`` calls.
* :mod:`~fusepack.bundler.resolver` -- ``package.path``-style module lookup.
* :mod:`~fusepack.bundler.bundler` -- graph walk and output rendering.

The main export is :func:`bundle`.
"""

from fusepack.bundler.bundler import (
    ROOT_MODULE_NAME,
    BundledModule,
    BundleResult,
    DynamicReference,
    bundle,
)
from fusepack.bundler.resolver import ModuleResolver
from fusepack.bundler.scanner import ModuleReference, scan_requires

__all__ = [
    "ROOT_MODULE_NAME",
    "BundleResult",
    "BundledModule",
    "DynamicReference",
    "ModuleReference",
    "ModuleResolver",
    "bundle",
    "scan_requires",
]
