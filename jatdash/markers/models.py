"""Core data models for the marker protocol.

All enums and dataclasses live here so the scanner, the format
strategies and the resolver share one definition.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MarkerType(str, Enum):
    """Tags an agent may emit. Values are the literal tag text."""
    WORKING = "WORKING"
    READY = "READY"
    IDLE = "IDLE"
    NEEDS_INPUT = "NEEDS_INPUT"
    NEEDS_REVIEW = "NEEDS_REVIEW"
    COMPLETED = "COMPLETED"
    AUTO_PROCEED = "AUTO_PROCEED"
    COMPACTING = "COMPACTING"
    HUMAN_ACTION = "HUMAN_ACTION"
    SUGGESTED_TASKS = "SUGGESTED_TASKS"


SIMPLE_MARKER_TYPES: tuple[MarkerType, ...] = (
    MarkerType.NEEDS_INPUT,
    MarkerType.NEEDS_REVIEW,
    MarkerType.COMPLETED,
    MarkerType.AUTO_PROCEED,
    MarkerType.COMPACTING,
)


class SessionState(str, Enum):
    """Logical session status surfaced to dashboard consumers."""
    STARTING = "starting"
    WORKING = "working"
    NEEDS_INPUT = "needs-input"
    READY_FOR_REVIEW = "ready-for-review"
    COMPLETING = "completing"
    COMPLETED = "completed"
    IDLE = "idle"


@dataclass
class Marker:
    """A marker found in terminal output.

    ``position`` is the offset of the opening ``[`` inside the buffer the
    marker was read from. It only orders markers of the same buffer.
    """
    type: MarkerType
    position: int
    raw: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "position": self.position,
            "raw": self.raw,
        }


@dataclass
class SimpleMarker(Marker):
    """NEEDS_INPUT, NEEDS_REVIEW, COMPLETED, AUTO_PROCEED or COMPACTING."""


@dataclass
class WorkingMarker(Marker):
    task: str

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "task": self.task}


@dataclass
class ReadyMarker(Marker):
    actions: str

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "actions": self.actions}


@dataclass
class IdleMarker(Marker):
    actions: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.actions is not None:
            data["actions"] = self.actions
        return data


@dataclass
class HumanAction:
    """A decision or manual step the agent is waiting on."""
    title: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "description": self.description}


@dataclass
class HumanActionMarker(Marker):
    action: HumanAction

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "action": self.action.to_dict()}


@dataclass
class SuggestedTask:
    """A follow-up task proposed by an agent.

    Optional fields are ``None`` when the agent did not send them and are
    left out of ``to_dict()``.
    """
    type: str = "task"
    title: str = ""
    description: str = ""
    priority: int = 2  # 0 (critical) .. 4 (lowest)
    id: str | None = None
    reason: str | None = None
    project: str | None = None
    labels: str | None = None  # comma-separated
    depends_on: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
        }
        for key in ("id", "reason", "project", "labels"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.depends_on is not None:
            data["depends_on"] = list(self.depends_on)
        return data


@dataclass
class SuggestedTasksMarker(Marker):
    tasks: list[SuggestedTask] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "tasks": [task.to_dict() for task in self.tasks],
        }


@dataclass
class MarkerParseResult:
    """Most recent marker of each type found in one buffer.

    ``human_actions`` keeps every valid occurrence in document order since
    several pending actions can be queued at once.
    """
    working: WorkingMarker | None = None
    ready: ReadyMarker | None = None
    idle: IdleMarker | None = None
    needs_input: SimpleMarker | None = None
    needs_review: SimpleMarker | None = None
    completed: SimpleMarker | None = None
    auto_proceed: SimpleMarker | None = None
    compacting: SimpleMarker | None = None
    human_actions: list[HumanActionMarker] = field(default_factory=list)
    suggested_tasks: SuggestedTasksMarker | None = None

    def markers(self) -> list[Marker]:
        """All markers in the result ordered by position."""
        found: list[Marker] = [
            marker
            for marker in (
                self.working,
                self.ready,
                self.idle,
                self.needs_input,
                self.needs_review,
                self.completed,
                self.auto_proceed,
                self.compacting,
                self.suggested_tasks,
            )
            if marker is not None
        ]
        found.extend(self.human_actions)
        return sorted(found, key=lambda marker: marker.position)

    def is_empty(self) -> bool:
        return not self.markers()

    def to_dict(self) -> dict[str, Any]:
        def _dump(marker: Marker | None) -> dict[str, Any] | None:
            return marker.to_dict() if marker is not None else None

        return {
            "working": _dump(self.working),
            "ready": _dump(self.ready),
            "idle": _dump(self.idle),
            "needsInput": _dump(self.needs_input),
            "needsReview": _dump(self.needs_review),
            "completed": _dump(self.completed),
            "autoProceed": _dump(self.auto_proceed),
            "compacting": _dump(self.compacting),
            "humanActions": [marker.to_dict() for marker in self.human_actions],
            "suggestedTasks": _dump(self.suggested_tasks),
        }
