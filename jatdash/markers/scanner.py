"""Locate JAT activity markers in raw terminal output.

Handles three marker shapes:

1. Simple markers: ``[JAT:NEEDS_INPUT]``, ``[JAT:COMPLETED]``, ...
2. Key-value markers: ``[JAT:WORKING task=xxx]``, ``[JAT:READY actions=xxx]``
3. JSON payload markers: ``[JAT:HUMAN_ACTION {...}]``,
   ``[JAT:SUGGESTED_TASKS {...}]`` (see formats.py for the block form)

Only the fixed tag text is searched for; payload bodies are delimited by
balanced counting. Every function scans the whole buffer and keeps no
state, so the most recent marker of a type always supersedes older ones.
A malformed marker is dropped without affecting any other.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from .errors import PayloadDecodeError
from .extract import extract_balanced_json, extract_key_value
from .formats import find_suggested_tasks_marker, inline_raw
from .models import (
    HumanActionMarker,
    IdleMarker,
    MarkerParseResult,
    MarkerType,
    ReadyMarker,
    SIMPLE_MARKER_TYPES,
    SimpleMarker,
    WorkingMarker,
)
from .normalize import decode_human_action, load_payload

logger = logging.getLogger(__name__)

WORKING_PREFIX = "[JAT:WORKING task="
READY_PREFIX = "[JAT:READY actions="
IDLE_ACTIONS_PREFIX = "[JAT:IDLE actions="
IDLE_MARKER = "[JAT:IDLE]"
HUMAN_ACTION_PREFIX = "[JAT:HUMAN_ACTION "

# Markers that mean an agent is actively engaged with a task.
ACTIVITY_PREFIXES: tuple[str, ...] = (
    "[JAT:WORKING",
    "[JAT:NEEDS_INPUT]",
    "[JAT:NEEDS_REVIEW]",
    "[JAT:READY",
)

ANY_MARKER_PREFIXES: tuple[str, ...] = (
    "[JAT:WORKING",
    "[JAT:READY",
    "[JAT:IDLE",
    "[JAT:NEEDS_INPUT]",
    "[JAT:NEEDS_REVIEW]",
    "[JAT:COMPLETED]",
    "[JAT:AUTO_PROCEED]",
    "[JAT:COMPACTING]",
    "[JAT:HUMAN_ACTION",
    "[JAT:SUGGESTED_TASKS",
)


def simple_marker_text(marker_type: MarkerType) -> str:
    return f"[JAT:{marker_type.value}]"


def find_simple_marker(output: str, marker_type: MarkerType) -> SimpleMarker | None:
    """Find the last occurrence of a payload-free marker."""
    if marker_type not in SIMPLE_MARKER_TYPES:
        raise ValueError(f"{marker_type.value} is not a simple marker")
    text = simple_marker_text(marker_type)
    position = output.rfind(text)
    if position == -1:
        return None
    return SimpleMarker(type=marker_type, position=position, raw=text)


def _find_key_value(output: str, prefix: str) -> tuple[int, str, str] | None:
    """Last ``prefix`` occurrence as ``(position, value, raw)``."""
    position = output.rfind(prefix)
    if position == -1:
        return None
    extracted = extract_key_value(output, position + len(prefix))
    if extracted is None:
        logger.debug("Unclosed marker %r at %d", prefix, position)
        return None
    value, close_index = extracted
    if not value:
        logger.debug("Empty value in marker %r at %d", prefix, position)
        return None
    return position, value, output[position:close_index + 1]


def find_working_marker(output: str) -> WorkingMarker | None:
    """Find the last WORKING marker and its task id."""
    found = _find_key_value(output, WORKING_PREFIX)
    if found is None:
        return None
    position, task, raw = found
    return WorkingMarker(type=MarkerType.WORKING, position=position, raw=raw, task=task)


def find_ready_marker(output: str) -> ReadyMarker | None:
    """Find the last READY marker and its actions text."""
    found = _find_key_value(output, READY_PREFIX)
    if found is None:
        return None
    position, actions, raw = found
    return ReadyMarker(type=MarkerType.READY, position=position, raw=raw, actions=actions)


def find_idle_marker(output: str) -> IdleMarker | None:
    """Find the last IDLE marker in either of its two forms.

    A session can toggle between ``[JAT:IDLE]`` and
    ``[JAT:IDLE actions=...]``; whichever appears later wins. A malformed
    keyed form falls back to the plain one.
    """
    pos_simple = output.rfind(IDLE_MARKER)
    if output.rfind(IDLE_ACTIONS_PREFIX) > pos_simple:
        found = _find_key_value(output, IDLE_ACTIONS_PREFIX)
        if found is not None:
            position, actions, raw = found
            return IdleMarker(
                type=MarkerType.IDLE, position=position, raw=raw, actions=actions
            )

    if pos_simple == -1:
        return None
    return IdleMarker(type=MarkerType.IDLE, position=pos_simple, raw=IDLE_MARKER)


def find_human_action_markers(output: str) -> list[HumanActionMarker]:
    """Find every valid HUMAN_ACTION marker, in document order."""
    markers: list[HumanActionMarker] = []
    search_start = 0

    while True:
        position = output.find(HUMAN_ACTION_PREFIX, search_start)
        if position == -1:
            break
        search_start = position + 1

        json_start = position + len(HUMAN_ACTION_PREFIX)
        json_str = extract_balanced_json(output, json_start)
        if json_str is None:
            logger.debug("Unbalanced HUMAN_ACTION payload at %d", position)
            continue

        try:
            payload = load_payload(MarkerType.HUMAN_ACTION, position, json_str)
            action = decode_human_action(position, payload)
        except PayloadDecodeError as exc:
            logger.debug("Dropping marker: %s", exc)
            continue

        markers.append(HumanActionMarker(
            type=MarkerType.HUMAN_ACTION,
            position=position,
            raw=inline_raw(output, position, json_start + len(json_str)),
            action=action,
        ))

    return markers


def parse_all_markers(output: str) -> MarkerParseResult:
    """Parse every marker type from ``output``.

    Returns the last occurrence of each type (all occurrences for
    HUMAN_ACTION). Never raises on malformed markers.
    """
    return MarkerParseResult(
        working=find_working_marker(output),
        ready=find_ready_marker(output),
        idle=find_idle_marker(output),
        needs_input=find_simple_marker(output, MarkerType.NEEDS_INPUT),
        needs_review=find_simple_marker(output, MarkerType.NEEDS_REVIEW),
        completed=find_simple_marker(output, MarkerType.COMPLETED),
        auto_proceed=find_simple_marker(output, MarkerType.AUTO_PROCEED),
        compacting=find_simple_marker(output, MarkerType.COMPACTING),
        human_actions=find_human_action_markers(output),
        suggested_tasks=find_suggested_tasks_marker(output),
    )


def has_activity_markers(output: str) -> bool:
    """Quick check for markers showing an agent engaged with a task."""
    return any(prefix in output for prefix in ACTIVITY_PREFIXES)


def get_most_recent_marker_position(output: str) -> int:
    """Offset of the latest marker tag of any type, or -1."""
    return max((output.rfind(prefix) for prefix in ANY_MARKER_PREFIXES), default=-1)


def find_last_pos(output: str, patterns: Iterable[str | re.Pattern[str]]) -> int:
    """Start offset of the last match of any pattern, or -1.

    Matches may overlap: the search resumes one character after each hit.
    """
    max_pos = -1
    for pattern in patterns:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        search_from = 0
        last_index = -1
        while search_from <= len(output):
            match = regex.search(output, search_from)
            if match is None:
                break
            last_index = match.start()
            search_from = last_index + 1
        max_pos = max(max_pos, last_index)
    return max_pos
