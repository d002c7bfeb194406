"""Tests for SUGGESTED_TASKS block/inline decoding and task normalization."""
from __future__ import annotations

import json

from jatdash.markers import SuggestedTask, find_suggested_tasks_marker
from jatdash.markers.formats import (
    SUGGESTED_TASKS_FORMATS,
    BlockFormat,
    InlineFormat,
)
from jatdash.markers.normalize import (
    normalize_block_body,
    normalize_suggested_task,
    recent_output,
    strip_ansi,
)


def _block(body: str) -> str:
    return f"[JAT:SUGGESTED_TASKS]\n{body}\n[/JAT:SUGGESTED_TASKS]"


def _inline(payload: dict) -> str:
    return f"[JAT:SUGGESTED_TASKS {json.dumps(payload)}]"


def test_formats_are_tried_block_first() -> None:
    assert [f.name for f in SUGGESTED_TASKS_FORMATS] == ["block", "inline"]


class TestBlockFormat:
    def test_decodes_block(self) -> None:
        output = "log line\n" + _block(
            '{"tasks":[{"type":"bug","title":"Fix race","description":"d","priority":1}]}'
        )
        marker = BlockFormat().find(output)
        assert marker is not None
        assert marker.position == output.index("[JAT:SUGGESTED_TASKS]")
        assert marker.raw == output[marker.position:]
        assert marker.tasks == [
            SuggestedTask(type="bug", title="Fix race", description="d", priority=1)
        ]

    def test_tolerates_line_wrapping_and_ansi(self) -> None:
        body = (
            '\x1b[38;5;246m{"tasks":[{"type":"feature",\r\n'
            '   "title":"Add\x1b[0m retry",\n'
            '      "description":"Retry on\n   timeout","priority":\x1b[1m3\x1b[0m}]}'
        )
        marker = BlockFormat().find(_block(body))
        assert marker is not None
        assert marker.tasks[0].type == "feature"
        assert marker.tasks[0].title == "Add retry"
        assert marker.tasks[0].description == "Retry on timeout"
        assert marker.tasks[0].priority == 3

    def test_uses_last_block(self) -> None:
        output = (
            _block('{"tasks":[{"title":"old"}]}')
            + "\n...\n"
            + _block('{"tasks":[{"title":"new"}]}')
        )
        marker = BlockFormat().find(output)
        assert marker is not None
        assert [t.title for t in marker.tasks] == ["new"]
        assert marker.position == output.rindex("[JAT:SUGGESTED_TASKS]")

    def test_close_tag_without_open_tag(self) -> None:
        assert BlockFormat().find('{"tasks":[]}\n[/JAT:SUGGESTED_TASKS]') is None

    def test_open_tag_without_close_tag(self) -> None:
        assert BlockFormat().find('[JAT:SUGGESTED_TASKS]\n{"tasks":[]}') is None

    def test_truncated_body(self) -> None:
        assert BlockFormat().find(_block('{"tasks":[{"title":"x"}')) is None

    def test_tasks_must_be_list(self) -> None:
        assert BlockFormat().find(_block('{"tasks":{"title":"x"}}')) is None

    def test_non_object_task_drops_marker(self) -> None:
        assert BlockFormat().find(_block('{"tasks":[{"title":"x"}, null]}')) is None


class TestInlineFormat:
    def test_decodes_inline(self) -> None:
        output = "x " + _inline({"tasks": [{"title": "Write docs"}]}) + " y"
        marker = InlineFormat().find(output)
        assert marker is not None
        assert marker.position == 2
        assert marker.raw == _inline({"tasks": [{"title": "Write docs"}]})
        assert marker.tasks == [SuggestedTask(title="Write docs")]

    def test_uses_last_inline_even_if_invalid(self) -> None:
        output = _inline({"tasks": [{"title": "a"}]}) + '\n[JAT:SUGGESTED_TASKS {"tasks":'
        assert InlineFormat().find(output) is None


class TestFormatPrecedence:
    def test_block_wins_over_later_inline(self) -> None:
        output = (
            _block('{"tasks":[{"title":"from block"}]}')
            + "\n"
            + _inline({"tasks": [{"title": "from inline"}]})
        )
        marker = find_suggested_tasks_marker(output)
        assert marker is not None
        assert [t.title for t in marker.tasks] == ["from block"]

    def test_falls_back_to_inline_when_block_broken(self) -> None:
        output = (
            _inline({"tasks": [{"title": "from inline"}]})
            + "\n"
            + _block('{"tasks": "nope"}')
        )
        marker = find_suggested_tasks_marker(output)
        assert marker is not None
        assert [t.title for t in marker.tasks] == ["from inline"]

    def test_nothing_found(self) -> None:
        assert find_suggested_tasks_marker("plain output") is None


class TestNormalizeSuggestedTask:
    def test_defaults(self) -> None:
        task = normalize_suggested_task({})
        assert task == SuggestedTask(type="task", title="", description="", priority=2)
        assert task.to_dict() == {
            "type": "task",
            "title": "",
            "description": "",
            "priority": 2,
        }

    def test_optional_fields_kept(self) -> None:
        task = normalize_suggested_task({
            "id": "jat-9",
            "type": "chore",
            "title": "Bump deps",
            "description": "",
            "priority": 4,
            "reason": "stale lockfile",
            "project": "jat",
            "labels": "deps,maintenance",
            "depends_on": ["jat-1", "jat-2"],
        })
        assert task.to_dict() == {
            "id": "jat-9",
            "type": "chore",
            "title": "Bump deps",
            "description": "",
            "priority": 4,
            "reason": "stale lockfile",
            "project": "jat",
            "labels": "deps,maintenance",
            "depends_on": ["jat-1", "jat-2"],
        }

    def test_non_numeric_priority_defaults(self) -> None:
        assert normalize_suggested_task({"priority": "high"}).priority == 2
        assert normalize_suggested_task({"priority": True}).priority == 2
        assert normalize_suggested_task({"priority": 1.5}).priority == 2
        assert normalize_suggested_task({"priority": 0}).priority == 0
        assert normalize_suggested_task({"priority": 1.0}).priority == 1

    def test_empty_type_defaults(self) -> None:
        assert normalize_suggested_task({"type": ""}).type == "task"
        assert normalize_suggested_task({"type": None}).type == "task"

    def test_depends_on_only_kept_when_list(self) -> None:
        assert normalize_suggested_task({"depends_on": "jat-1"}).depends_on is None
        assert normalize_suggested_task({"depends_on": []}).depends_on == []
        assert normalize_suggested_task({"depends_on": ["a", 7]}).depends_on == ["a", "7"]

    def test_labels_list_is_joined(self) -> None:
        assert normalize_suggested_task({"labels": ["ui", "bug"]}).labels == "ui,bug"
        assert normalize_suggested_task({"labels": 3}).labels is None

    def test_null_optionals_are_absent(self) -> None:
        task = normalize_suggested_task({"id": None, "reason": None})
        assert "id" not in task.to_dict()
        assert "reason" not in task.to_dict()


class TestOutputNormalization:
    def test_strip_ansi(self) -> None:
        assert strip_ansi("\x1b[1;32mok\x1b[0m \x1b]0;title\x07done") == "ok done"

    def test_normalize_block_body(self) -> None:
        assert normalize_block_body('  {"a":\r\n   1,\n\n  "b":  2}  ') == '{"a": 1, "b": 2}'

    def test_recent_output_keeps_trailing_lines(self) -> None:
        output = "one\ntwo\nthree\n"
        assert recent_output(output, 2) == "two\nthree\n"
        assert recent_output(output, 10) == output
        assert recent_output(output, None) == output
        assert recent_output(output, 0) == ""

    def test_recent_output_counts_newline_rows_only(self) -> None:
        output = (
            "[JAT:WORKING task=a]\n"
            + "progress 1%\rprogress 2%\r" * 30
            + "done\n"
        )
        assert recent_output(output, 50) == output
        assert recent_output(output, 2) == output
        tail = recent_output(output, 1)
        assert tail.startswith("progress 1%\r")
        assert tail.endswith("done\n")
        assert recent_output("a\r\nb\r\n", 1) == "b\r\n"
        assert recent_output("a\x0cb\x1ec d", 1) == "a\x0cb\x1ec d"

    def test_recent_output_strips_ansi(self) -> None:
        assert recent_output("\x1b[31m[JAT:IDLE]\x1b[0m", 5, strip_ansi_codes=True) == "[JAT:IDLE]"
