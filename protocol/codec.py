"""
Minimal structured-data codec for model output.

The decoder is a best-effort recursive-descent scanner, not a conforming JSON
parser:
- the usual backslash escapes are decoded; an unknown escape keeps the escaped
  character (the action extractor runs its own unescape pass when a model
  double-encodes its payload)
- anything after the first complete value is ignored
- malformed input makes ``decode`` return None instead of raising

Encoding treats a dict keyed exactly by 1..n as an array. Python lists are
native sequences, so an empty list encodes as ``[]`` and an empty dict as ``{}``.
"""

from __future__ import annotations

import math
from typing import Any

from .errors import CodecError

WHITESPACE = " \t\n\r"
NUMBER_CHARS = frozenset("0123456789.-+eE")
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", "b": "\b", "f": "\f", "/": "/"}

MAX_DEPTH = 64
MAX_INPUT_CHARS = 1_000_000


class _Scanner:
    """Single-pass cursor over the input text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.depth = 0

    def skip_whitespace(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self) -> str:
        if self.pos < len(self.text):
            return self.text[self.pos]
        return ""

    def value(self) -> Any:
        self.skip_whitespace()
        c = self.peek()
        if c == "":
            raise CodecError("unexpected end of input", self.pos)
        if c == '"':
            return self.string()
        if c == "{":
            return self.nested(self.obj)
        if c == "[":
            return self.nested(self.array)
        if c == "t":
            return self.literal("true", True)
        if c == "f":
            return self.literal("false", False)
        if c == "n":
            return self.literal("null", None)
        return self.number()

    def nested(self, parse):
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise CodecError("nesting too deep", self.pos)
        try:
            return parse()
        finally:
            self.depth -= 1

    def string(self) -> str:
        text = self.text
        self.pos += 1
        start = self.pos
        parts = []
        while self.pos < len(text):
            c = text[self.pos]
            if c == '"':
                self.pos += 1
                return "".join(parts)
            if c != "\\":
                parts.append(c)
                self.pos += 1
                continue
            if self.pos + 1 >= len(text):
                break
            esc = text[self.pos + 1]
            if esc == "u":
                digits = text[self.pos + 2:self.pos + 6]
                if len(digits) != 4 or not all(d in HEX_DIGITS for d in digits):
                    raise CodecError(f"invalid unicode escape {digits!r}", self.pos)
                parts.append(chr(int(digits, 16)))
                self.pos += 6
                continue
            # unknown escapes keep the escaped character
            parts.append(_UNESCAPES.get(esc, esc))
            self.pos += 2
        raise CodecError("unterminated string", start - 1)

    def obj(self) -> dict:
        self.pos += 1
        result: dict = {}
        self.skip_whitespace()
        if self.peek() == "}":
            self.pos += 1
            return result

        while True:
            self.skip_whitespace()
            if self.peek() != '"':
                raise CodecError("expected string key", self.pos)
            key = self.string()

            self.skip_whitespace()
            if self.peek() != ":":
                raise CodecError("expected ':'", self.pos)
            self.pos += 1

            result[key] = self.value()

            self.skip_whitespace()
            c = self.peek()
            if c == "}":
                self.pos += 1
                return result
            if c != ",":
                raise CodecError("expected ',' or '}'", self.pos)
            self.pos += 1

    def array(self) -> list:
        self.pos += 1
        result: list = []
        self.skip_whitespace()
        if self.peek() == "]":
            self.pos += 1
            return result

        while True:
            result.append(self.value())
            self.skip_whitespace()
            c = self.peek()
            if c == "]":
                self.pos += 1
                return result
            if c != ",":
                raise CodecError("expected ',' or ']'", self.pos)
            self.pos += 1

    def literal(self, word: str, value: Any) -> Any:
        if self.text.startswith(word, self.pos):
            self.pos += len(word)
            return value
        raise CodecError(f"invalid literal, expected {word!r}", self.pos)

    def number(self) -> int | float:
        text = self.text
        start = self.pos
        while self.pos < len(text) and text[self.pos] in NUMBER_CHARS:
            self.pos += 1
        token = text[start:self.pos]
        if not token:
            raise CodecError(f"unexpected character {text[start]!r}", start)
        try:
            return int(token)
        except ValueError:
            pass
        try:
            return float(token)
        except ValueError:
            raise CodecError(f"invalid number {token!r}", start) from None


def decode_strict(text: str) -> Any:
    """Decode the first value in ``text``; raise CodecError on malformed input."""
    if not isinstance(text, str):
        raise CodecError("input is not text")
    if len(text) > MAX_INPUT_CHARS:
        raise CodecError("input too large")
    return _Scanner(text).value()


def decode(text: str) -> Any:
    """Lenient decode: returns None on malformed input."""
    try:
        return decode_strict(text)
    except CodecError:
        return None


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def _encode_string(value: str) -> str:
    parts = []
    for ch in value:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ord(ch) < 0x20:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(ch)
    return '"' + "".join(parts) + '"'


def _is_array_like(mapping: dict) -> bool:
    """True when keys are exactly the integers 1..n (n >= 1)."""
    keys = list(mapping)
    if not keys:
        return False
    if any(isinstance(k, bool) or not isinstance(k, int) for k in keys):
        return False
    return sorted(keys) == list(range(1, len(keys) + 1))


def encode(value: Any) -> str:
    """Encode native values; unsupported types encode as null."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return "null"
        return repr(value)
    if isinstance(value, str):
        return _encode_string(value)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(encode(v) for v in value) + "]"
    if isinstance(value, dict):
        if _is_array_like(value):
            return "[" + ",".join(encode(value[i]) for i in range(1, len(value) + 1)) + "]"
        return "{" + ",".join(
            f"{_encode_string(str(k))}:{encode(v)}" for k, v in value.items()
        ) + "}"
    return "null"
