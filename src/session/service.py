"""Thread-safe in-memory focus session state machine."""

from __future__ import annotations

import logging
import math
import threading
import time
from datetime import datetime
from typing import Callable, Optional, Union

from .constants import (
    ACTION_PAUSE,
    ACTION_RESET,
    ACTION_RESUME,
    ACTION_SET_DURATION,
    ACTION_START,
    ACTION_STOP,
    ACTION_TICK,
    DEFAULT_SESSION_SECONDS,
    REASON_DURATION_UPDATED,
    REASON_INVALID_DURATION,
    REASON_NOT_ACTIVE,
    REASON_NOT_COMPLETED,
    REASON_NOT_IDLE,
    REASON_NOT_PAUSED,
    REASON_NOT_RUNNING,
    REASON_PAUSED,
    REASON_RESET,
    REASON_RESUMED,
    REASON_STARTED,
    REASON_STOPPED,
    REASON_UNSUPPORTED_ACTION,
    STATE_COMPLETED,
    STATE_IDLE,
    STATE_PAUSED,
    STATE_RUNNING,
    TICK_INTERVAL_SECONDS,
    VALID_TRANSITIONS,
)
from .events import TransitionPublisher
from .presets import DurationPreset
from .types import (
    SessionAction,
    SessionActionResult,
    SessionSnapshot,
    SessionState,
    SessionTick,
    SessionTransition,
)

DurationInput = Union[float, int, DurationPreset]


def can_start(state: SessionState) -> bool:
    return state == STATE_IDLE


def can_pause(state: SessionState) -> bool:
    return state == STATE_RUNNING


def can_resume(state: SessionState) -> bool:
    return state == STATE_PAUSED


def can_stop(state: SessionState) -> bool:
    return state in (STATE_RUNNING, STATE_PAUSED)


def can_reset(state: SessionState) -> bool:
    return state == STATE_COMPLETED


def is_valid_transition(previous: SessionState, current: SessionState) -> bool:
    return (previous, current) in VALID_TRANSITIONS


def valid_transitions(state: SessionState) -> list[SessionState]:
    order = (STATE_RUNNING, STATE_PAUSED, STATE_IDLE, STATE_COMPLETED)
    return [target for target in order if (state, target) in VALID_TRANSITIONS]


class SessionTimer:
    """Focus countdown with explicit transitions and a wall-clock tick source.

    Remaining time moves in whole-second ticks. The tick source is a deadline
    owned by the timer and driven by `poll()`: every whole second of running
    time (monotonic deltas with paused intervals excluded) fires one tick, so
    missed polls are caught up and a pause in the middle of a second keeps the
    fraction for after `resume()`.

    Actions that do not apply to the current state are rejected as no-ops.
    """

    def __init__(
        self,
        *,
        duration_seconds: DurationInput = DEFAULT_SESSION_SECONDS,
        publisher: Optional[TransitionPublisher] = None,
        logger: Optional[logging.Logger] = None,
        monotonic_fn: Optional[Callable[[], float]] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        duration = _coerce_duration(duration_seconds)
        if duration is None:
            raise ValueError("duration_seconds must be greater than zero")

        self._publisher = publisher
        self._logger = logger or logging.getLogger("session")
        self._monotonic = monotonic_fn or time.monotonic
        self._now = now_fn or (lambda: datetime.now().astimezone())
        self._lock = threading.Lock()

        self._state: SessionState = STATE_IDLE
        self._selected_duration = duration
        self._remaining_time = duration
        self._session_started_at: Optional[datetime] = None

        self._tick_source_active = False
        self._segment_started_at: Optional[float] = None
        self._elapsed_before_pause = 0.0
        self._ticks_applied = 0

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def start(self) -> SessionActionResult:
        transitions: list[SessionTransition] = []
        with self._lock:
            if not can_start(self._state):
                return self._result_locked(ACTION_START, False, REASON_NOT_IDLE)

            remaining_before = self._remaining_time
            self._remaining_time = self._selected_duration
            self._session_started_at = self._now()
            self._start_tick_source_locked(elapsed_before=0.0)
            self._ticks_applied = 0
            transitions.append(
                self._transition_locked(STATE_RUNNING, ACTION_START, remaining_before)
            )
            self._logger.info(
                "Session started: duration=%ss",
                _display_seconds(self._selected_duration),
            )
            result = self._result_locked(ACTION_START, True, REASON_STARTED)
        self._publish(transitions)
        return result

    def pause(self) -> SessionActionResult:
        transitions: list[SessionTransition] = []
        with self._lock:
            self._catch_up_locked(transitions)
            if not can_pause(self._state):
                result = self._result_locked(ACTION_PAUSE, False, REASON_NOT_RUNNING)
            else:
                self._cancel_tick_source_locked()
                transitions.append(
                    self._transition_locked(
                        STATE_PAUSED,
                        ACTION_PAUSE,
                        self._remaining_time,
                    )
                )
                self._logger.info(
                    "Session paused: remaining=%ss",
                    _display_seconds(self._remaining_time),
                )
                result = self._result_locked(ACTION_PAUSE, True, REASON_PAUSED)
        self._publish(transitions)
        return result

    def resume(self) -> SessionActionResult:
        transitions: list[SessionTransition] = []
        with self._lock:
            if not can_resume(self._state):
                return self._result_locked(ACTION_RESUME, False, REASON_NOT_PAUSED)

            self._start_tick_source_locked(elapsed_before=self._elapsed_before_pause)
            transitions.append(
                self._transition_locked(
                    STATE_RUNNING,
                    ACTION_RESUME,
                    self._remaining_time,
                )
            )
            self._logger.info(
                "Session resumed: remaining=%ss",
                _display_seconds(self._remaining_time),
            )
            result = self._result_locked(ACTION_RESUME, True, REASON_RESUMED)
        self._publish(transitions)
        return result

    def stop(self) -> SessionActionResult:
        transitions: list[SessionTransition] = []
        with self._lock:
            self._catch_up_locked(transitions)
            if not can_stop(self._state):
                result = self._result_locked(ACTION_STOP, False, REASON_NOT_ACTIVE)
            else:
                remaining_before = self._remaining_time
                self._cancel_tick_source_locked()
                self._reset_clock_locked()
                transitions.append(
                    self._transition_locked(STATE_IDLE, ACTION_STOP, remaining_before)
                )
                self._logger.info(
                    "Session stopped: remaining_at_stop=%ss",
                    _display_seconds(remaining_before),
                )
                result = self._result_locked(ACTION_STOP, True, REASON_STOPPED)
        self._publish(transitions)
        return result

    def reset(self) -> SessionActionResult:
        transitions: list[SessionTransition] = []
        with self._lock:
            if not can_reset(self._state):
                return self._result_locked(ACTION_RESET, False, REASON_NOT_COMPLETED)

            remaining_before = self._remaining_time
            self._reset_clock_locked()
            transitions.append(
                self._transition_locked(STATE_IDLE, ACTION_RESET, remaining_before)
            )
            self._logger.info("Session reset")
            result = self._result_locked(ACTION_RESET, True, REASON_RESET)
        self._publish(transitions)
        return result

    def set_duration(self, duration: DurationInput) -> SessionActionResult:
        with self._lock:
            seconds = _coerce_duration(duration)
            if seconds is None:
                return self._result_locked(
                    ACTION_SET_DURATION,
                    False,
                    REASON_INVALID_DURATION,
                )

            self._selected_duration = seconds
            if self._state == STATE_IDLE:
                self._remaining_time = seconds
            else:
                # Keeps 0 <= remaining <= selected while a countdown is in progress.
                self._remaining_time = min(self._remaining_time, seconds)
            self._logger.info(
                "Session duration set: duration=%ss state=%s",
                _display_seconds(seconds),
                self._state,
            )
            return self._result_locked(ACTION_SET_DURATION, True, REASON_DURATION_UPDATED)

    def apply(self, action: SessionAction) -> SessionActionResult:
        handlers = {
            ACTION_START: self.start,
            ACTION_PAUSE: self.pause,
            ACTION_RESUME: self.resume,
            ACTION_STOP: self.stop,
            ACTION_RESET: self.reset,
        }
        handler = handlers.get(action)
        if handler is None:
            with self._lock:
                return self._result_locked(action, False, REASON_UNSUPPORTED_ACTION)
        return handler()

    def tick(self) -> Optional[SessionTick]:
        """Advance the countdown by one second; ignored unless running."""
        transitions: list[SessionTransition] = []
        with self._lock:
            tick = self._tick_locked(transitions)
        self._publish(transitions)
        return tick

    def poll(self) -> Optional[SessionTick]:
        """Fire every tick that is due on the wall clock and report the latest one."""
        transitions: list[SessionTransition] = []
        with self._lock:
            tick = self._catch_up_locked(transitions)
        self._publish(transitions)
        return tick

    def seconds_until_next_tick(self) -> Optional[float]:
        with self._lock:
            if not self._tick_source_active:
                return None
            elapsed = self._running_elapsed_locked(self._monotonic())
            next_deadline = (self._ticks_applied + 1) * TICK_INTERVAL_SECONDS
            return max(0.0, next_deadline - elapsed)

    def _tick_locked(
        self,
        transitions: list[SessionTransition],
    ) -> Optional[SessionTick]:
        if self._state != STATE_RUNNING:
            return None

        remaining_before = self._remaining_time
        self._remaining_time = max(0.0, self._remaining_time - TICK_INTERVAL_SECONDS)
        self._ticks_applied += 1
        if self._remaining_time > 0:
            return SessionTick(snapshot=self._snapshot_locked(), completed=False)

        self._remaining_time = 0.0
        self._cancel_tick_source_locked()
        transitions.append(
            self._transition_locked(STATE_COMPLETED, ACTION_TICK, remaining_before)
        )
        self._logger.info(
            "Session completed: duration=%ss",
            _display_seconds(self._selected_duration),
        )
        return SessionTick(snapshot=self._snapshot_locked(), completed=True)

    def _catch_up_locked(
        self,
        transitions: list[SessionTransition],
    ) -> Optional[SessionTick]:
        if not self._tick_source_active or self._state != STATE_RUNNING:
            return None

        elapsed = self._running_elapsed_locked(self._monotonic())
        due = int(math.floor(elapsed / TICK_INTERVAL_SECONDS)) - self._ticks_applied
        latest: Optional[SessionTick] = None
        for _ in range(max(0, due)):
            latest = self._tick_locked(transitions)
            if latest is None or latest.completed:
                break
        if due > 1:
            self._logger.debug("Caught up %d missed ticks", due)
        return latest

    def _running_elapsed_locked(self, now: float) -> float:
        if self._segment_started_at is None:
            return self._elapsed_before_pause
        return self._elapsed_before_pause + max(0.0, now - self._segment_started_at)

    def _start_tick_source_locked(self, *, elapsed_before: float) -> None:
        self._elapsed_before_pause = elapsed_before
        self._segment_started_at = self._monotonic()
        self._tick_source_active = True

    def _cancel_tick_source_locked(self) -> None:
        if self._segment_started_at is not None:
            self._elapsed_before_pause = self._running_elapsed_locked(self._monotonic())
        self._segment_started_at = None
        self._tick_source_active = False

    def _reset_clock_locked(self) -> None:
        self._remaining_time = self._selected_duration
        self._session_started_at = None
        self._segment_started_at = None
        self._elapsed_before_pause = 0.0
        self._ticks_applied = 0
        self._tick_source_active = False

    def _transition_locked(
        self,
        target: SessionState,
        action: str,
        remaining_before: float,
    ) -> SessionTransition:
        previous = self._state
        self._state = target
        return SessionTransition(
            previous=previous,
            current=target,
            action=action,
            snapshot=self._snapshot_locked(),
            remaining_before=remaining_before,
            occurred_at=self._now(),
        )

    def _result_locked(
        self,
        action: SessionAction,
        accepted: bool,
        reason: str,
    ) -> SessionActionResult:
        return SessionActionResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=self._snapshot_locked(),
        )

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            selected_duration=self._selected_duration,
            remaining_time=self._remaining_time,
            session_started_at=self._session_started_at,
        )

    def _publish(self, transitions: list[SessionTransition]) -> None:
        if self._publisher is None:
            return
        for transition in transitions:
            self._publisher.publish(transition)


def _coerce_duration(value: DurationInput) -> Optional[float]:
    if isinstance(value, DurationPreset):
        return value.seconds
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


def _display_seconds(value: float) -> int | float:
    return int(value) if float(value).is_integer() else round(value, 3)
