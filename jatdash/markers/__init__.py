"""JAT activity marker protocol: scanning, decoding and state resolution."""

from .errors import ConfigError, MarkerError, PayloadDecodeError
from .extract import extract_balanced_json, extract_key_value
from .formats import SUGGESTED_TASKS_FORMATS, find_suggested_tasks_marker
from .models import (
    HumanAction,
    HumanActionMarker,
    IdleMarker,
    Marker,
    MarkerParseResult,
    MarkerType,
    ReadyMarker,
    SessionState,
    SimpleMarker,
    SuggestedTask,
    SuggestedTasksMarker,
    WorkingMarker,
)
from .resolver import (
    StateCounts,
    count_session_states,
    determine_session_state,
    session_state_candidates,
)
from .scanner import (
    find_human_action_markers,
    find_idle_marker,
    find_last_pos,
    find_ready_marker,
    find_simple_marker,
    find_working_marker,
    get_most_recent_marker_position,
    has_activity_markers,
    parse_all_markers,
)

__all__ = [
    # Errors
    "ConfigError",
    "MarkerError",
    "PayloadDecodeError",
    # Models
    "HumanAction",
    "HumanActionMarker",
    "IdleMarker",
    "Marker",
    "MarkerParseResult",
    "MarkerType",
    "ReadyMarker",
    "SessionState",
    "SimpleMarker",
    "SuggestedTask",
    "SuggestedTasksMarker",
    "WorkingMarker",
    # Extraction
    "extract_balanced_json",
    "extract_key_value",
    # Scanning
    "SUGGESTED_TASKS_FORMATS",
    "find_human_action_markers",
    "find_idle_marker",
    "find_last_pos",
    "find_ready_marker",
    "find_simple_marker",
    "find_suggested_tasks_marker",
    "find_working_marker",
    "get_most_recent_marker_position",
    "has_activity_markers",
    "parse_all_markers",
    # State resolution
    "StateCounts",
    "count_session_states",
    "determine_session_state",
    "session_state_candidates",
]
