"""
Turns raw model text into what the transcript shows.

Action payloads and code fences are stripped; whatever prose remains is shown.
When nothing remains the user still gets a message, never a silent no-op.
"""

from __future__ import annotations

import re

APPLYING_TEXT = "Applying settings..."
NO_ACTION_PREFIX = "Could not identify action. Raw response:\n"
ERROR_PREFIX = "Error: "

_FENCED_BLOCK = re.compile(r"```.*?```", re.DOTALL)
_OPEN_FENCE = re.compile(r"```.*", re.DOTALL)
_INNER_BRACES = re.compile(r"\{[^{}]*\}")
_NEWLINE_RUNS = re.compile(r"\n\s*\n+")

_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_HEADING = re.compile(r"^#{1,6}\s*(.+)$", re.MULTILINE)
_BULLET = re.compile(r"^[*\-]\s", re.MULTILINE)
_INLINE_CODE = re.compile(r"`([^`]+)`")


def clean_display_text(raw_text: str) -> str:
    """Remove fenced blocks and ``{...}`` spans, then normalize whitespace."""
    text = (raw_text or "").replace("\\n", "\n").replace("\\r", "")
    text = _FENCED_BLOCK.sub("", text)
    # an unclosed fence runs to the end (truncated output)
    text = _OPEN_FENCE.sub("", text)

    # innermost first so nested objects disappear completely
    while "{" in text:
        stripped = _INNER_BRACES.sub("", text)
        if stripped == text:
            break
        text = stripped

    text = _NEWLINE_RUNS.sub("\n", text)
    return text.strip()


def response_display_text(raw_text: str, action_found: bool) -> str:
    """Cleaned prose, or the fallback for an empty result."""
    cleaned = clean_display_text(raw_text)
    if cleaned:
        return cleaned
    if action_found:
        return APPLYING_TEXT
    return NO_ACTION_PREFIX + (raw_text or "")


def error_display_text(message: str) -> str:
    return ERROR_PREFIX + (message or "Unknown error")


def plain_text(text: str) -> str:
    """Markdown to terminal text: headings upper-cased, emphasis and code ticks dropped."""
    text = _HEADING.sub(lambda m: m.group(1).upper(), text or "")
    text = _BOLD.sub(r"\1", text)
    text = _BULLET.sub("• ", text)
    text = _INLINE_CODE.sub(r"'\1'", text)
    return text.replace('\\"', '"')
