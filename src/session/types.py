"""Immutable snapshot, result, and transition types published by the session timer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

from .constants import ACTIVE_STATES
from .formatting import format_time

SessionState = Literal["idle", "running", "paused", "completed"]
SessionAction = Literal["start", "pause", "resume", "stop", "reset", "set_duration"]


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session clock exposed to runtime and UI publishers."""
    state: SessionState
    selected_duration: float
    remaining_time: float
    session_started_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    @property
    def elapsed_time(self) -> float:
        return max(0.0, self.selected_duration - self.remaining_time)

    @property
    def progress(self) -> float:
        if self.selected_duration <= 0:
            return 0.0
        return 1.0 - (self.remaining_time / self.selected_duration)

    @property
    def formatted_remaining(self) -> str:
        return format_time(self.remaining_time)

    @property
    def formatted_selected(self) -> str:
        return format_time(self.selected_duration)


@dataclass(frozen=True)
class SessionActionResult:
    """Result envelope returned after applying a user action to the timer."""
    action: SessionAction
    accepted: bool
    reason: str
    snapshot: SessionSnapshot


@dataclass(frozen=True)
class SessionTick:
    """Tick payload emitted while the countdown is running."""
    snapshot: SessionSnapshot
    completed: bool = False


@dataclass(frozen=True)
class SessionTransition:
    """State-change event emitted exactly once per timer transition.

    `remaining_before` is the remaining time immediately before the transition,
    which lets subscribers account for a `stop` even though stopping resets
    the clock.
    """
    previous: SessionState
    current: SessionState
    action: str
    snapshot: SessionSnapshot
    remaining_before: float
    occurred_at: datetime
