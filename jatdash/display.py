"""Rich rendering of session states and parsed markers."""

from __future__ import annotations

from rich.console import Group
from rich.table import Table
from rich.text import Text

from .markers.models import (
    HumanActionMarker,
    IdleMarker,
    Marker,
    MarkerParseResult,
    ReadyMarker,
    SessionState,
    SuggestedTasksMarker,
    WorkingMarker,
)

STATE_DISPLAY: dict[SessionState, tuple[str, str]] = {
    SessionState.STARTING: ("○ Starting", "dim"),
    SessionState.WORKING: ("▶ Working", "green"),
    SessionState.NEEDS_INPUT: ("⏳ Needs input", "bold yellow"),
    SessionState.READY_FOR_REVIEW: ("● Ready for review", "cyan"),
    SessionState.COMPLETING: ("↻ Completing", "magenta"),
    SessionState.COMPLETED: ("✓ Completed", "dim green"),
    SessionState.IDLE: ("○ Idle", "dim"),
}

PRIORITY_STYLES = {0: "bold red", 1: "red", 2: "yellow", 3: "default", 4: "dim"}


def render_state_badge(state: SessionState) -> Text:
    label, style = STATE_DISPLAY.get(state, ("? " + str(state), "white"))
    return Text(label, style=style)


def marker_summary(marker: Marker) -> str:
    """One-line payload summary for the marker table."""
    if isinstance(marker, WorkingMarker):
        return f"task={marker.task}"
    if isinstance(marker, ReadyMarker):
        return f"actions={marker.actions}"
    if isinstance(marker, IdleMarker):
        return f"actions={marker.actions}" if marker.actions is not None else ""
    if isinstance(marker, HumanActionMarker):
        return marker.action.title
    if isinstance(marker, SuggestedTasksMarker):
        count = len(marker.tasks)
        return f"{count} task" + ("" if count == 1 else "s")
    return ""


def render_markers_table(markers: MarkerParseResult) -> Table:
    table = Table(title="Markers", title_justify="left", expand=False)
    table.add_column("Pos", justify="right", style="dim")
    table.add_column("Type", style="bold")
    table.add_column("Payload")
    for marker in markers.markers():
        table.add_row(str(marker.position), marker.type.value, marker_summary(marker))
    return table


def render_suggested_tasks(marker: SuggestedTasksMarker) -> Table:
    table = Table(title="Suggested tasks", title_justify="left")
    table.add_column("P", justify="right")
    table.add_column("Type")
    table.add_column("Title", style="bold")
    table.add_column("Depends on", style="dim")
    for task in marker.tasks:
        table.add_row(
            Text(f"P{task.priority}", style=PRIORITY_STYLES.get(task.priority, "default")),
            task.type,
            task.title,
            ", ".join(task.depends_on or []),
        )
    return table


def render_parse_result(markers: MarkerParseResult, state: SessionState) -> Group:
    """Compose the full CLI view: state badge, markers, payload details."""
    parts: list = [Text.assemble("State: ", render_state_badge(state))]
    if markers.is_empty():
        parts.append(Text("No markers found", style="dim"))
        return Group(*parts)

    parts.append(render_markers_table(markers))
    for marker in markers.human_actions:
        parts.append(Text.assemble(
            ("⚠ ", "yellow"),
            (marker.action.title, "bold"),
            (f": {marker.action.description}" if marker.action.description else ""),
        ))
    if markers.suggested_tasks is not None and markers.suggested_tasks.tasks:
        parts.append(render_suggested_tasks(markers.suggested_tasks))
    return Group(*parts)
