"""Session state resolution from parsed markers.

Markers are append-only annotations on a growing stream and are never
retracted, so the marker with the highest position is the current truth:

    candidates = [(state, position) for each marker present]
    sort by position, descending
    first candidate wins; no candidates -> starting (task assigned) / idle
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass

from .models import MarkerParseResult, SessionState


def session_state_candidates(markers: MarkerParseResult) -> list[tuple[SessionState, int]]:
    """Build ``(state, position)`` pairs for every state-bearing marker."""
    candidates: list[tuple[SessionState, int]] = []

    if markers.completed is not None:
        candidates.append((SessionState.COMPLETED, markers.completed.position))
    # AUTO_PROCEED is a completion that the dashboard closes automatically
    if markers.auto_proceed is not None:
        candidates.append((SessionState.COMPLETED, markers.auto_proceed.position))
    if markers.idle is not None:
        candidates.append((SessionState.IDLE, markers.idle.position))
    if markers.needs_input is not None:
        candidates.append((SessionState.NEEDS_INPUT, markers.needs_input.position))
    review_positions = [
        marker.position
        for marker in (markers.needs_review, markers.ready)
        if marker is not None
    ]
    if review_positions:
        candidates.append((SessionState.READY_FOR_REVIEW, max(review_positions)))
    if markers.compacting is not None:
        candidates.append((SessionState.COMPLETING, markers.compacting.position))
    if markers.working is not None:
        candidates.append((SessionState.WORKING, markers.working.position))

    candidates.sort(key=lambda candidate: candidate[1], reverse=True)
    return candidates


def determine_session_state(
    markers: MarkerParseResult,
    has_task: bool = False,
) -> SessionState:
    """Resolve the session state; the most recent marker wins."""
    candidates = session_state_candidates(markers)
    if candidates:
        return candidates[0][0]
    return SessionState.STARTING if has_task else SessionState.IDLE


@dataclass
class StateCounts:
    """Per-bucket session totals shown in the dashboard header."""
    needs_input: int = 0
    working: int = 0
    review: int = 0
    completed: int = 0
    starting: int = 0
    idle: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


_STATE_BUCKETS: dict[SessionState, str] = {
    SessionState.NEEDS_INPUT: "needs_input",
    SessionState.WORKING: "working",
    SessionState.READY_FOR_REVIEW: "review",
    SessionState.COMPLETED: "completed",
    SessionState.COMPLETING: "completed",
    SessionState.STARTING: "starting",
    SessionState.IDLE: "idle",
}


# Legacy state strings reported by older dashboards.
_LEGACY_BUCKETS: dict[str, str] = {
    "compacting": "working",
}


def count_session_states(states: Iterable[SessionState | str]) -> StateCounts:
    """Tally session states.

    The legacy ``"compacting"`` state counts as working; any other
    unrecognized value counts as idle.
    """
    counts = StateCounts()
    for state in states:
        try:
            bucket = _STATE_BUCKETS[SessionState(state)]
        except ValueError:
            bucket = _LEGACY_BUCKETS.get(state, "idle")
        setattr(counts, bucket, getattr(counts, bucket) + 1)
    return counts
