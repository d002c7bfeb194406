"""Normalization helpers for marker payloads and captured terminal output."""

from __future__ import annotations

import json
import re
from typing import Any

from .errors import PayloadDecodeError
from .models import HumanAction, MarkerType, SuggestedTask

# CSI sequences (colors, cursor moves) and OSC sequences (titles, links).
_ANSI_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
)
_LINE_BREAK_RE = re.compile(r"(?:\r\n|\r|\n)\s*")
_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")

DEFAULT_TASK_TYPE = "task"
DEFAULT_TASK_PRIORITY = 2


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from terminal text."""
    if "\x1b" not in text:
        return text
    return _ANSI_RE.sub("", text)


def normalize_block_body(body: str) -> str:
    """Undo TUI line wrapping inside a block marker body.

    The terminal re-wraps long JSON lines and may paint them with color
    codes; both are removed and every whitespace run becomes one space.
    """
    cleaned = strip_ansi(body.strip())
    cleaned = _LINE_BREAK_RE.sub(" ", cleaned)
    cleaned = _WHITESPACE_RUN_RE.sub(" ", cleaned)
    return cleaned.strip()


def recent_output(output: str, lines: int | None, *, strip_ansi_codes: bool = False) -> str:
    """Keep only the trailing ``lines`` lines of a captured buffer.

    Lines are terminal rows and end in ``"\\n"``. A bare ``"\\r"`` (progress
    output redrawing its row) does not start a new line.
    """
    if lines is not None and lines >= 0:
        output = _trailing_rows(output, lines)
    if strip_ansi_codes:
        output = strip_ansi(output)
    return output


def _trailing_rows(output: str, lines: int) -> str:
    if lines == 0:
        return ""
    start = len(output) - 1 if output.endswith("\n") else len(output)
    for _ in range(lines):
        start = output.rfind("\n", 0, start)
        if start < 0:
            return output
    return output[start + 1:]


def load_payload(marker_type: MarkerType, position: int, json_str: str) -> dict[str, Any]:
    """Parse a JSON payload that must be an object."""
    try:
        parsed = json.loads(json_str)
    except (ValueError, RecursionError) as exc:
        raise PayloadDecodeError(marker_type.value, position, f"invalid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise PayloadDecodeError(
            marker_type.value, position, f"expected object, got {type(parsed).__name__}"
        )
    return parsed


def decode_human_action(position: int, payload: dict[str, Any]) -> HumanAction:
    """Build a HumanAction; ``title`` is required."""
    title = payload.get("title")
    if not isinstance(title, str) or not title:
        raise PayloadDecodeError(MarkerType.HUMAN_ACTION.value, position, "missing title")
    description = payload.get("description")
    return HumanAction(
        title=title,
        description=description if isinstance(description, str) else "",
    )


def decode_suggested_tasks(position: int, payload: dict[str, Any]) -> list[SuggestedTask]:
    """Build the task list of a SUGGESTED_TASKS payload.

    Any entry that is not an object invalidates the whole payload.
    """
    tasks = payload.get("tasks")
    if not isinstance(tasks, list):
        raise PayloadDecodeError(
            MarkerType.SUGGESTED_TASKS.value, position, "'tasks' is not a list"
        )
    decoded: list[SuggestedTask] = []
    for index, item in enumerate(tasks):
        if not isinstance(item, dict):
            raise PayloadDecodeError(
                MarkerType.SUGGESTED_TASKS.value,
                position,
                f"task {index} is {type(item).__name__}, expected object",
            )
        decoded.append(normalize_suggested_task(item))
    return decoded


def normalize_suggested_task(item: dict[str, Any]) -> SuggestedTask:
    """Fill defaults for one task object and drop ill-typed optionals."""
    task_type = item.get("type")
    return SuggestedTask(
        type=task_type if isinstance(task_type, str) and task_type else DEFAULT_TASK_TYPE,
        title=_text(item.get("title")),
        description=_text(item.get("description")),
        priority=_priority(item.get("priority")),
        id=_optional_text(item.get("id")),
        reason=_optional_text(item.get("reason")),
        project=_optional_text(item.get("project")),
        labels=_labels(item.get("labels")),
        depends_on=_depends_on(item.get("depends_on")),
    )


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _priority(value: Any) -> int:
    # bool is an int subclass but never a priority
    if isinstance(value, bool):
        return DEFAULT_TASK_PRIORITY
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return DEFAULT_TASK_PRIORITY


def _labels(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(label, str) for label in value):
        return ",".join(value)
    return None


def _depends_on(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [dep if isinstance(dep, str) else json.dumps(dep) for dep in value]
