"""Wire encodings accepted for SUGGESTED_TASKS markers.

Two encodings coexist in agent output:

    [JAT:SUGGESTED_TASKS]
    {"tasks": [...]}
    [/JAT:SUGGESTED_TASKS]

    [JAT:SUGGESTED_TASKS {"tasks": [...]}]

Each one is a ``PayloadFormat`` strategy. ``SUGGESTED_TASKS_FORMATS``
lists them in priority order and the first strategy that yields a marker
wins, so a valid block hides any inline marker in the same buffer.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .errors import PayloadDecodeError
from .extract import extract_balanced_json
from .models import MarkerType, SuggestedTasksMarker
from .normalize import decode_suggested_tasks, load_payload, normalize_block_body

logger = logging.getLogger(__name__)

BLOCK_OPEN_TAG = "[JAT:SUGGESTED_TASKS]"
BLOCK_CLOSE_TAG = "[/JAT:SUGGESTED_TASKS]"
INLINE_PREFIX = "[JAT:SUGGESTED_TASKS "


class PayloadFormat(ABC):
    """Strategy that finds and decodes the last marker in one encoding."""

    name: str

    @abstractmethod
    def find(self, output: str) -> SuggestedTasksMarker | None:
        """Return the most recent decodable marker, or None."""


class BlockFormat(PayloadFormat):
    """``[JAT:SUGGESTED_TASKS]`` ... ``[/JAT:SUGGESTED_TASKS]``."""

    name = "block"

    def find(self, output: str) -> SuggestedTasksMarker | None:
        close_pos = output.rfind(BLOCK_CLOSE_TAG)
        if close_pos == -1:
            return None
        open_pos = output.rfind(BLOCK_OPEN_TAG, 0, close_pos)
        if open_pos == -1:
            return None

        content = normalize_block_body(output[open_pos + len(BLOCK_OPEN_TAG):close_pos])
        json_start = content.find("{")
        if json_start == -1:
            logger.debug("Suggested tasks block at %d has no JSON body", open_pos)
            return None
        json_str = extract_balanced_json(content, json_start)
        if json_str is None:
            logger.debug("Suggested tasks block at %d is unbalanced", open_pos)
            return None

        try:
            payload = load_payload(MarkerType.SUGGESTED_TASKS, open_pos, json_str)
            tasks = decode_suggested_tasks(open_pos, payload)
        except PayloadDecodeError as exc:
            logger.debug("Dropping marker: %s", exc)
            return None

        return SuggestedTasksMarker(
            type=MarkerType.SUGGESTED_TASKS,
            position=open_pos,
            raw=output[open_pos:close_pos + len(BLOCK_CLOSE_TAG)],
            tasks=tasks,
        )


class InlineFormat(PayloadFormat):
    """``[JAT:SUGGESTED_TASKS {json}]``."""

    name = "inline"

    def find(self, output: str) -> SuggestedTasksMarker | None:
        position = output.rfind(INLINE_PREFIX)
        if position == -1:
            return None

        json_start = position + len(INLINE_PREFIX)
        json_str = extract_balanced_json(output, json_start)
        if json_str is None:
            logger.debug("Inline suggested tasks at %d is unbalanced", position)
            return None

        try:
            payload = load_payload(MarkerType.SUGGESTED_TASKS, position, json_str)
            tasks = decode_suggested_tasks(position, payload)
        except PayloadDecodeError as exc:
            logger.debug("Dropping marker: %s", exc)
            return None

        return SuggestedTasksMarker(
            type=MarkerType.SUGGESTED_TASKS,
            position=position,
            raw=inline_raw(output, position, json_start + len(json_str)),
            tasks=tasks,
        )


def inline_raw(output: str, position: int, payload_end: int) -> str:
    """Marker text from ``position`` through the ``]`` closing the payload.

    Whitespace between the payload and the bracket is tolerated. When the
    bracket is missing (truncated write) the text stops at the payload.
    """
    end = payload_end
    while end < len(output) and output[end] in " \t":
        end += 1
    if end < len(output) and output[end] == "]":
        return output[position:end + 1]
    return output[position:payload_end]


SUGGESTED_TASKS_FORMATS: tuple[PayloadFormat, ...] = (BlockFormat(), InlineFormat())


def find_suggested_tasks_marker(
    output: str,
    formats: tuple[PayloadFormat, ...] = SUGGESTED_TASKS_FORMATS,
) -> SuggestedTasksMarker | None:
    """Try each encoding in priority order and return the first hit."""
    for payload_format in formats:
        marker = payload_format.find(output)
        if marker is not None:
            return marker
    return None
