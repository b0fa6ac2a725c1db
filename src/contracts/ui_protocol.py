"""Web UI websocket event, command, and state constants."""

from __future__ import annotations

# Websocket event types
EVENT_HELLO = "hello"
EVENT_SESSION = "session"
EVENT_AUDIO = "audio"
EVENT_FOCUS_MODE = "focus_mode"
EVENT_STATISTICS = "statistics"
EVENT_NOTIFICATION = "notification"
EVENT_ADVISORY = "advisory"
EVENT_COMMAND_RESULT = "command_result"
EVENT_ERROR = "error"

# Commands accepted from websocket clients ({"command": ..., ...})
COMMAND_START = "start"
COMMAND_PAUSE = "pause"
COMMAND_RESUME = "resume"
COMMAND_STOP = "stop"
COMMAND_RESET = "reset"
COMMAND_SET_DURATION = "set_duration"
COMMAND_SELECT_SOUND = "select_sound"
COMMAND_SET_VOLUME = "set_volume"
COMMAND_TOGGLE_MUTE = "toggle_mute"
COMMAND_STATISTICS = "statistics"
COMMAND_RESET_PREFERENCES = "reset_preferences"

SUPPORTED_COMMANDS: frozenset[str] = frozenset(
    {
        COMMAND_START,
        COMMAND_PAUSE,
        COMMAND_RESUME,
        COMMAND_STOP,
        COMMAND_RESET,
        COMMAND_SET_DURATION,
        COMMAND_SELECT_SOUND,
        COMMAND_SET_VOLUME,
        COMMAND_TOGGLE_MUTE,
        COMMAND_STATISTICS,
        COMMAND_RESET_PREFERENCES,
    }
)

# Advisory sources
ADVISORY_FOCUS_MODE = "focus_mode"
ADVISORY_HISTORY = "history"
ADVISORY_PREFERENCES = "preferences"

STICKY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_SESSION,
        EVENT_AUDIO,
        EVENT_FOCUS_MODE,
        EVENT_STATISTICS,
        EVENT_ADVISORY,
    }
)

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_SESSION,
    EVENT_AUDIO,
    EVENT_FOCUS_MODE,
    EVENT_STATISTICS,
    EVENT_ADVISORY,
)
