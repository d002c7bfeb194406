"""Balanced-delimiter extraction for marker payloads.

Payload bodies are located by counting delimiter depth in a single
forward pass instead of pattern matching, so every scan is linear and
terminates on any input.
"""
from __future__ import annotations


def extract_balanced_json(text: str, start_pos: int) -> str | None:
    """Return the balanced JSON object that starts at ``start_pos``.

    Braces inside string literals are ignored and a backslash inside a
    string escapes exactly the next character. Returns ``None`` when
    ``text[start_pos]`` is not ``{`` or the object never closes (output
    truncated mid-write).
    """
    if start_pos < 0 or start_pos >= len(text) or text[start_pos] != "{":
        return None

    depth = 0
    in_string = False
    escape_next = False

    for i in range(start_pos, len(text)):
        char = text[i]

        if escape_next:
            escape_next = False
            continue

        if in_string:
            if char == "\\":
                escape_next = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start_pos:i + 1]

    return None


def extract_key_value(text: str, start_pos: int) -> tuple[str, int] | None:
    """Read a ``key=value]`` body that starts right after the ``=``.

    Depth starts at 1 because the caller already consumed the marker's
    opening ``[``. Nested ``[...]`` pairs stay part of the value.

    Returns ``(value, close_index)`` with the value stripped, or ``None``
    when the closing bracket is missing.
    """
    depth = 1
    for i in range(start_pos, len(text)):
        char = text[i]
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start_pos:i].strip(), i
    return None
