"""Tokenizer for Lua source, just deep enough to find ``require`` calls.

The bundler never evaluates Lua; it only needs to tell a string literal
from an expression and to skip over comments and long strings without
mistaking their contents for code. :func:`tokenize` therefore produces a
flat token stream with source positions and decoded string values.

Dialect differences that change what is *lexically* valid are honoured so
that a file the target interpreter would reject is rejected here too:

* ``//``, ``&``, ``|``, ``~`` (binary/unary), ``<<``, ``>>`` -- Lua 5.3+.
* ``::`` (goto labels) -- Lua 5.2+ and LuaJIT.
* ``LL``/``ULL``/``i`` numeric suffixes -- LuaJIT only.

Line endings are normalised by the caller; positions are 1-based.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from fusepack.exceptions import BundleSyntaxError
from fusepack.models import LuaVersion

NAME = "name"
KEYWORD = "keyword"
STRING = "string"
NUMBER = "number"
OP = "op"
EOF = "eof"

KEYWORDS = frozenset({
    "and", "break", "do", "else", "elseif", "end", "false", "for", "function",
    "goto", "if", "in", "local", "nil", "not", "or", "repeat", "return", "then",
    "true", "until", "while",
})

# Longest first so that "..." wins over ".." and ".".
_OPERATORS = (
    "...", "..", "==", "~=", "<=", ">=", "::", "//", "<<", ">>",
    "+", "-", "*", "/", "%", "^", "#", "&", "~", "|", "<", ">", "=",
    "(", ")", "{", "}", "[", "]", ";", ":", ",", ".",
)
_INTEGER_OPERATORS = frozenset({"//", "&", "|", "~", "<<", ">>"})
_DIGITS = "0123456789"

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_HEX_RE = re.compile(r"0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?")
_DEC_RE = re.compile(r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_JIT_SUFFIX_RE = re.compile(r"(?:ULL|ull|LL|ll|i|I)")
_LONG_OPEN_RE = re.compile(r"\[(=*)\[")
_UTF8_ESCAPE_RE = re.compile(r"\{([0-9a-fA-F]+)\}")

_SIMPLE_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v",
    "\\": "\\", '"': '"', "'": "'", "\n": "\n",
}


@dataclass(frozen=True)
class Token:
    """A lexical token.

    ``start``/``end`` are offsets into the source text so callers can slice
    the original spelling of an expression back out.
    """

    kind: str
    value: str
    line: int
    column: int
    start: int
    end: int


class _Lexer:
    def __init__(self, text: str, path: str, version: LuaVersion) -> None:
        self.text = text
        self.path = path
        self.version = version
        self.pos = 0
        self.line = 1
        self.line_start = 0

    def error(self, message: str, offset: Optional[int] = None) -> BundleSyntaxError:
        offset = self.pos if offset is None else offset
        line = self.text.count("\n", 0, offset) + 1
        column = offset - (self.text.rfind("\n", 0, offset) + 1) + 1
        return BundleSyntaxError(message, self.path, line, column)

    def _advance_to(self, offset: int) -> None:
        newlines = self.text.count("\n", self.pos, offset)
        if newlines:
            self.line += newlines
            self.line_start = self.text.rfind("\n", self.pos, offset) + 1
        self.pos = offset

    def _long_bracket_end(self, level: int, opened_at: int) -> tuple[int, int]:
        """Return (content_end, close_end) for a long bracket opened at *opened_at*."""
        closing = "]" + "=" * level + "]"
        content_start = opened_at + level + 2
        close = self.text.find(closing, content_start)
        if close < 0:
            raise self.error("unfinished long string or comment", opened_at)
        return close, close + len(closing)

    def tokens(self) -> list[Token]:
        text = self.text
        out: list[Token] = []
        length = len(text)
        while True:
            # Skip whitespace and comments.
            while self.pos < length:
                ch = text[self.pos]
                if ch in " \t\r\f\v\n":
                    self._advance_to(self.pos + 1)
                elif text.startswith("--", self.pos):
                    match = _LONG_OPEN_RE.match(text, self.pos + 2)
                    if match:
                        _, close_end = self._long_bracket_end(len(match.group(1)), self.pos + 2)
                        self._advance_to(close_end)
                    else:
                        newline = text.find("\n", self.pos)
                        self._advance_to(length if newline < 0 else newline)
                else:
                    break

            if self.pos >= length:
                out.append(Token(EOF, "", self.line, self.pos - self.line_start + 1, self.pos, self.pos))
                return out

            start = self.pos
            line = self.line
            column = start - self.line_start + 1
            ch = text[start]

            match = _NAME_RE.match(text, start)
            if match:
                word = match.group(0)
                kind = KEYWORD if word in KEYWORDS else NAME
                self._advance_to(match.end())
                out.append(Token(kind, word, line, column, start, self.pos))
                continue

            if ch in _DIGITS or (ch == "." and start + 1 < length and text[start + 1] in _DIGITS):
                out.append(self._number(start, line, column))
                continue

            if ch in "\"'":
                value, end = self._short_string(start)
                self._advance_to(end)
                out.append(Token(STRING, value, line, column, start, end))
                continue

            if ch == "[":
                match = _LONG_OPEN_RE.match(text, start)
                if match:
                    level = len(match.group(1))
                    content_end, close_end = self._long_bracket_end(level, start)
                    value = text[match.end():content_end]
                    if value.startswith("\n"):
                        value = value[1:]
                    self._advance_to(close_end)
                    out.append(Token(STRING, value, line, column, start, close_end))
                    continue

            out.append(self._operator(start, line, column))

    def _number(self, start: int, line: int, column: int) -> Token:
        match = _HEX_RE.match(self.text, start) or _DEC_RE.match(self.text, start)
        assert match is not None
        end = match.end()
        if self.version == LuaVersion.LUAJIT:
            suffix = _JIT_SUFFIX_RE.match(self.text, end)
            if suffix:
                end = suffix.end()
        if end < len(self.text) and (self.text[end].isalnum() or self.text[end] == "_"):
            raise self.error(f"malformed number near '{self.text[start:end + 1]}'", start)
        self._advance_to(end)
        return Token(NUMBER, self.text[start:end], line, column, start, end)

    def _short_string(self, start: int) -> tuple[str, int]:
        text = self.text
        quote = text[start]
        pos = start + 1
        parts: list[str] = []
        while True:
            if pos >= len(text) or text[pos] == "\n":
                raise self.error("unfinished string", start)
            ch = text[pos]
            if ch == quote:
                return "".join(parts), pos + 1
            if ch != "\\":
                parts.append(ch)
                pos += 1
                continue

            pos += 1
            if pos >= len(text):
                raise self.error("unfinished string", start)
            esc = text[pos]
            if esc in _SIMPLE_ESCAPES:
                parts.append(_SIMPLE_ESCAPES[esc])
                pos += 1
            elif esc in _DIGITS:
                digits = re.match(r"[0-9]{1,3}", text[pos:pos + 3])
                assert digits is not None
                code = int(digits.group(0))
                if code > 255:
                    raise self.error("decimal escape too large", pos)
                parts.append(chr(code))
                pos += len(digits.group(0))
            elif esc == "x":
                hex_digits = text[pos + 1:pos + 3]
                if not re.fullmatch(r"[0-9a-fA-F]{2}", hex_digits):
                    raise self.error("hexadecimal digit expected", pos)
                parts.append(chr(int(hex_digits, 16)))
                pos += 3
            elif esc == "z":
                pos += 1
                while pos < len(text) and text[pos] in " \t\r\f\v\n":
                    pos += 1
            elif esc == "u":
                match = _UTF8_ESCAPE_RE.match(text, pos + 1)
                if not match:
                    raise self.error("missing '{' or '}' in \\u{xxxx}", pos)
                code = int(match.group(1), 16)
                limit = 0x7FFFFFFF if self.version == LuaVersion.LUA_54 else 0x10FFFF
                if code > limit:
                    raise self.error("UTF-8 value too large", pos)
                # Lua 5.4 encodes values past U+10FFFF as extended UTF-8; no str can hold them.
                parts.append(chr(code) if code <= 0x10FFFF else "\ufffd")
                pos = match.end()
            else:
                raise self.error(f"invalid escape sequence '\\{esc}'", pos)

    def _operator(self, start: int, line: int, column: int) -> Token:
        for op in _OPERATORS:
            if self.text.startswith(op, start):
                break
        else:
            raise self.error(f"unexpected symbol near '{self.text[start]}'", start)

        if op in _INTEGER_OPERATORS and self.version not in (LuaVersion.LUA_53, LuaVersion.LUA_54):
            raise self.error(f"operator '{op}' requires Lua 5.3 or later", start)
        if op == "::" and self.version == LuaVersion.LUA_51:
            raise self.error("goto labels require Lua 5.2 or LuaJIT", start)
        self._advance_to(start + len(op))
        return Token(OP, op, line, column, start, self.pos)


def tokenize(text: str, path: str = "<string>", version: LuaVersion = LuaVersion.LUAJIT) -> list[Token]:
    """Split Lua *text* into tokens, ending with a single ``EOF`` token.

    Args:
        text: Lua source with ``\\n`` line endings.
        path: File name used in error messages.
        version: Dialect whose lexical rules apply.

    Raises:
        BundleSyntaxError: On an unterminated string/comment, a malformed
            number, an invalid escape, or a symbol the dialect does not accept.
    """
    return _Lexer(text, path, version).tokens()
