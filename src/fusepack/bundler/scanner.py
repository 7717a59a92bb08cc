"""Find module references (``require`` calls) in a tokenised Lua module.

A reference is *literal* when the call's only argument is one string
literal, in any of the forms Lua accepts::

    require "json"
    require 'json'
    require [[json]]
    require("json")

Everything else that calls ``require`` is *dynamic*: the module name is an
expression that can only be known by running the program::

    require("locale." .. lang)
    require(name)
    require { "table", "arg" }

Field and method calls (``obj.require(...)``, ``obj:require(...)``) are not
module references. A bare ``require`` that is not called (``local r =
require``) is not a reference either. Neither is a function definition
that happens to be named ``require``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fusepack.bundler.lexer import EOF, KEYWORD, NAME, OP, STRING, Token, tokenize
from fusepack.models import LuaVersion


@dataclass(frozen=True)
class ModuleReference:
    """One ``require`` call site.

    Attributes:
        name: The module name for literal references, ``None`` otherwise.
        line: 1-based line of the ``require`` token.
        column: 1-based column of the ``require`` token.
        expression: Source spelling of the whole call.
    """

    name: Optional[str]
    line: int
    column: int
    expression: str

    @property
    def is_literal(self) -> bool:
        return self.name is not None


def _closing_paren(tokens: list[Token], open_index: int) -> int:
    """Index of the ``)`` matching the ``(`` at *open_index*, or the EOF token."""
    depth = 0
    for index in range(open_index, len(tokens)):
        token = tokens[index]
        if token.kind == OP and token.value in "({[":
            depth += 1
        elif token.kind == OP and token.value in ")}]":
            depth -= 1
            if depth == 0:
                return index
        elif token.kind == EOF:
            return index
    return len(tokens) - 1


def find_references(tokens: list[Token], text: str) -> list[ModuleReference]:
    """Return every ``require`` call in *tokens*, in source order.

    Args:
        tokens: Output of :func:`~fusepack.bundler.lexer.tokenize`.
        text: The source the tokens were produced from.
    """
    references: list[ModuleReference] = []
    for index, token in enumerate(tokens):
        if token.kind != NAME or token.value != "require":
            continue
        previous = tokens[index - 1] if index > 0 else None
        if previous is not None and previous.kind == OP and previous.value in (".", ":"):
            continue
        if previous is not None and previous.kind == KEYWORD and previous.value == "function":
            continue

        following = tokens[index + 1]
        if following.kind == STRING:
            references.append(ModuleReference(
                following.value, token.line, token.column, text[token.start:following.end],
            ))
        elif following.kind == OP and following.value == "(":
            close = _closing_paren(tokens, index + 1)
            arguments = tokens[index + 2:close]
            name = arguments[0].value if len(arguments) == 1 and arguments[0].kind == STRING else None
            references.append(ModuleReference(
                name, token.line, token.column, text[token.start:tokens[close].end],
            ))
        elif following.kind == OP and following.value == "{":
            close = _closing_paren(tokens, index + 1)
            references.append(ModuleReference(
                None, token.line, token.column, text[token.start:tokens[close].end],
            ))
    return references


def scan_requires(
    text: str,
    path: str = "<string>",
    version: LuaVersion = LuaVersion.LUAJIT,
) -> list[ModuleReference]:
    """Tokenise *text* and return its module references in source order.

    Raises:
        BundleSyntaxError: If the source cannot be tokenised for *version*.
    """
    return find_references(tokenize(text, path, version), text)
