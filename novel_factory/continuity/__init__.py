from .open_plot_points import get_open_plot_points
from .presence import (
    detect_missing_characters,
    get_characters_who_should_appear,
    track_character_presence,
)
from .promises import (
    extract_promises_from_chapter,
    get_high_priority_pending_promises,
    get_overdue_promises,
    track_promises,
)
from .story_state import (
    build_story_state_summary,
    extract_active_plot_threads,
    extract_character_states,
    format_story_state_summary,
)
from .validator import (
    get_validation_summary,
    validate_character_presence,
    validate_plot_thread_resolution,
)

__all__ = [
    "build_story_state_summary",
    "detect_missing_characters",
    "extract_active_plot_threads",
    "extract_character_states",
    "extract_promises_from_chapter",
    "format_story_state_summary",
    "get_characters_who_should_appear",
    "get_high_priority_pending_promises",
    "get_open_plot_points",
    "get_overdue_promises",
    "get_validation_summary",
    "track_character_presence",
    "track_promises",
    "validate_character_presence",
    "validate_plot_thread_resolution",
]
