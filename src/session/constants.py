"""State, action, and reason constants used by the session state machine."""

from __future__ import annotations

DEFAULT_SESSION_SECONDS = 60 * 60
TICK_INTERVAL_SECONDS = 1.0

STATE_IDLE = "idle"
STATE_RUNNING = "running"
STATE_PAUSED = "paused"
STATE_COMPLETED = "completed"

ALL_STATES: tuple[str, ...] = (
    STATE_IDLE,
    STATE_RUNNING,
    STATE_PAUSED,
    STATE_COMPLETED,
)
ACTIVE_STATES: frozenset[str] = frozenset({STATE_RUNNING, STATE_PAUSED})

ACTION_START = "start"
ACTION_PAUSE = "pause"
ACTION_RESUME = "resume"
ACTION_STOP = "stop"
ACTION_RESET = "reset"
ACTION_SET_DURATION = "set_duration"

ACTION_SYNC = "sync"
ACTION_TICK = "tick"

REASON_STARTED = "started"
REASON_PAUSED = "paused"
REASON_RESUMED = "resumed"
REASON_STOPPED = "stopped"
REASON_RESET = "reset"
REASON_DURATION_UPDATED = "duration_updated"
REASON_NOT_IDLE = "not_idle"
REASON_NOT_RUNNING = "not_running"
REASON_NOT_PAUSED = "not_paused"
REASON_NOT_ACTIVE = "not_active"
REASON_NOT_COMPLETED = "not_completed"
REASON_INVALID_DURATION = "invalid_duration"
REASON_UNSUPPORTED_ACTION = "unsupported_action"

REASON_TICK = "tick"
REASON_STARTUP = "startup"

# (from, to) pairs reachable through a single action or tick.
VALID_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        (STATE_IDLE, STATE_RUNNING),
        (STATE_RUNNING, STATE_PAUSED),
        (STATE_RUNNING, STATE_IDLE),
        (STATE_RUNNING, STATE_COMPLETED),
        (STATE_PAUSED, STATE_RUNNING),
        (STATE_PAUSED, STATE_IDLE),
        (STATE_COMPLETED, STATE_IDLE),
    }
)
