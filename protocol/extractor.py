"""
Recover a single structured action from free-form model output.

Models return the action payload in several shapes: bare, inside a fenced
code block, double-encoded inside a text field, or embedded in prose. The
strategies below run in order and the first candidate that decodes to a
mapping with an ``action`` field wins:

1. the whole text
2. the whole text after unescaping
3. each fenced code block (raw, then unescaped)
4. the first balanced ``{...}`` span (raw, then unescaped)

No candidate means "no edit requested", which is a normal outcome.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from .codec import decode, encode

MAX_SCAN_CHARS = 200_000

_FENCE_PATTERN = re.compile(r"```[ \t]*[A-Za-z0-9_+-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)
_SEPARATORS = re.compile(r"[\s_\-.]+")


class ActionKind(Enum):
    """Closed set of actions a model response can request."""
    APPLY_DEVELOP_SETTINGS = "applydevelopsettings"
    UNRECOGNIZED = "unrecognized"


def normalize_action_name(name: str) -> str:
    """'Apply_Develop-Settings' -> 'applydevelopsettings'."""
    return _SEPARATORS.sub("", str(name)).lower()


def resolve_action_kind(name: str) -> ActionKind:
    normalized = normalize_action_name(name)
    for kind in ActionKind:
        if kind is not ActionKind.UNRECOGNIZED and kind.value == normalized:
            return kind
    return ActionKind.UNRECOGNIZED


@dataclass
class ActionRequest:
    """Transient action decoded from model text; consumed by the translator."""
    kind: ActionKind
    name: str                                   # normalized identifier
    params: dict = field(default_factory=dict)  # semantic name -> number | string

    def to_payload(self) -> dict:
        return {"action": self.name, "params": dict(self.params)}

    def to_text(self) -> str:
        return encode(self.to_payload())


def unescape(text: str) -> str:
    """Undo one level of escaping: \\" -> " and \\n -> newline."""
    return text.replace('\\"', '"').replace("\\n", "\n")


def extract(raw_text: str) -> Optional[ActionRequest]:
    """Return the first action found in ``raw_text``, or None."""
    if not isinstance(raw_text, str) or not raw_text.strip():
        return None

    text = raw_text[:MAX_SCAN_CHARS]
    for candidate in _candidates(text):
        payload = _decode_action(candidate)
        if payload is not None:
            return _to_action_request(payload)
    return None


def _candidates(text: str) -> Iterator[str]:
    yield text
    yield unescape(text)

    for block in iter_fenced_blocks(text):
        yield block
        yield unescape(block)

    span = find_balanced_span(text)
    if span is not None:
        yield span
        yield unescape(span)


def iter_fenced_blocks(text: str) -> Iterator[str]:
    """Contents of ``` fenced blocks, with or without a language tag."""
    for match in _FENCE_PATTERN.finditer(text):
        yield match.group(1).strip()


def find_balanced_span(text: str, start_char: str = "{", end_char: str = "}") -> Optional[str]:
    """
    Span from the first ``start_char`` to its matching ``end_char`` by depth
    counting. Returns None when the span never closes (truncated output).
    """
    start = text.find(start_char)
    if start == -1:
        return None

    depth = 0
    limit = min(len(text), start + MAX_SCAN_CHARS)
    for i in range(start, limit):
        c = text[i]
        if c == start_char:
            depth += 1
        elif c == end_char:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def _decode_action(candidate: str) -> Optional[dict]:
    value = decode(candidate)
    if isinstance(value, dict) and value.get("action"):
        return value
    return None


def _to_action_request(payload: dict) -> ActionRequest:
    name = normalize_action_name(payload.get("action", ""))
    raw_params = payload.get("params")
    params = {}
    if isinstance(raw_params, dict):
        for key, value in raw_params.items():
            # bool is an int subclass; the host has no boolean sliders
            if isinstance(value, bool):
                continue
            if isinstance(value, (int, float, str)):
                params[key] = value
    return ActionRequest(kind=resolve_action_kind(name), name=name, params=params)
