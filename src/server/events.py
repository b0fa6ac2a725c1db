"""Serialization of outgoing UI events, sticky replay, and incoming command parsing."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from contracts.ui_protocol import (
    STICKY_EVENT_ORDER,
    STICKY_EVENT_TYPES,
    SUPPORTED_COMMANDS,
)


class CommandParseError(ValueError):
    """Raised when a websocket client sends a message that is not a valid command."""


def make_event(
    event_type: str,
    *,
    now_fn: Callable[[], datetime] | None = None,
    **payload: Any,
) -> str:
    """Serialize an event payload with type and timestamp for websocket delivery."""
    now = now_fn() if now_fn is not None else datetime.now(timezone.utc)
    return json.dumps(
        {
            "type": event_type,
            "timestamp": now.isoformat(),
            **payload,
        }
    )


def parse_command(message: str | bytes) -> dict[str, Any]:
    """Decode `{"command": <name>, ...}` from a client; raises `CommandParseError`."""
    try:
        payload = json.loads(message)
    except (TypeError, ValueError) as error:
        raise CommandParseError(f"Command is not valid JSON: {error}") from error

    if not isinstance(payload, dict):
        raise CommandParseError("Command must be a JSON object")

    name = payload.get("command")
    if not isinstance(name, str) or not name.strip():
        raise CommandParseError("Command object requires a 'command' string")

    name = name.strip().lower()
    if name not in SUPPORTED_COMMANDS:
        raise CommandParseError(f"Unsupported command: {name}")

    return {**payload, "command": name}


class StickyEventStore:
    """Thread-safe cache of the latest sticky event per type, replayed to new clients."""
    def __init__(self):
        self._events: dict[str, str] = {}
        self._lock = threading.Lock()

    def remember(self, event_type: str, message: str) -> None:
        if event_type not in STICKY_EVENT_TYPES:
            return
        with self._lock:
            self._events[event_type] = message

    def latest(self, event_type: str) -> Optional[str]:
        with self._lock:
            return self._events.get(event_type)

    def snapshot(self) -> list[str]:
        with self._lock:
            return [self._events[key] for key in STICKY_EVENT_ORDER if key in self._events]
