from .constants import DEFAULT_SESSION_SECONDS
from .events import QueueTransitionPublisher, TransitionPublisher
from .formatting import (
    extract_digits,
    format_duration_words,
    format_time,
    parse_time,
)
from .presets import DURATION_PRESETS, DurationPreset
from .service import (
    SessionTimer,
    can_pause,
    can_reset,
    can_resume,
    can_start,
    can_stop,
    is_valid_transition,
    valid_transitions,
)
from .types import (
    SessionAction,
    SessionActionResult,
    SessionSnapshot,
    SessionState,
    SessionTick,
    SessionTransition,
)

__all__ = [
    "DEFAULT_SESSION_SECONDS",
    "DURATION_PRESETS",
    "DurationPreset",
    "QueueTransitionPublisher",
    "SessionAction",
    "SessionActionResult",
    "SessionSnapshot",
    "SessionState",
    "SessionTick",
    "SessionTimer",
    "SessionTransition",
    "TransitionPublisher",
    "can_pause",
    "can_reset",
    "can_resume",
    "can_start",
    "can_stop",
    "extract_digits",
    "format_duration_words",
    "format_time",
    "is_valid_transition",
    "parse_time",
    "valid_transitions",
]
