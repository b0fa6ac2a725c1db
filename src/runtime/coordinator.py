"""Session coordinator that turns timer transitions into collaborator side effects."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from audio import AmbientSound, AudioService
from contracts.ui_protocol import ADVISORY_FOCUS_MODE, ADVISORY_HISTORY
from focus_mode import FocusModeOutcome, FocusModeSymmetryTracker
from history import HistoryRecorder, HistoryStoreError, SessionRecord
from session import SessionTick, SessionTimer, SessionTransition
from session.constants import (
    ACTION_TICK,
    ACTIVE_STATES,
    REASON_TICK,
    STATE_COMPLETED,
    STATE_IDLE,
    STATE_PAUSED,
    STATE_RUNNING,
)

from .notifications import NotifierLike, completion_message
from .ui import RuntimeUIPublisher

FOCUS_ENABLE = "enable"
FOCUS_DISABLE = "disable"


@dataclass(frozen=True)
class CoordinatorDependencies:
    """Collaborators the coordinator drives on each session transition."""
    timer: SessionTimer
    history: HistoryRecorder
    audio: AudioService
    notifier: NotifierLike
    ui: RuntimeUIPublisher
    logger: logging.Logger
    focus_tracker: Optional[FocusModeSymmetryTracker] = None
    focus_timeout_seconds: float = 0.5
    monotonic_fn: Callable[[], float] = time.monotonic


@dataclass
class PendingFocusRequest:
    operation: str
    future: concurrent.futures.Future
    submitted_at: float
    timeout_reported: bool = False


@dataclass
class ActiveSession:
    started_at: datetime
    planned_duration: float
    sound: Optional[AmbientSound] = None


@dataclass
class CoordinatorState:
    selected_sound: Optional[AmbientSound] = None
    active_session: Optional[ActiveSession] = None
    pending_focus: list[PendingFocusRequest] = field(default_factory=list)


class SessionCoordinator:
    """Sole subscriber to timer transitions; performs each side effect exactly once.

    Transitions must be delivered in order from one thread (the runtime loop).
    Focus-mode requests run on a single-worker executor so they never block a
    transition; `process_focus_requests()` reports their outcome and flags any
    request still pending after `focus_timeout_seconds`. Collaborator failures
    are logged and published as advisories and never reach the timer.
    """

    def __init__(
        self,
        dependencies: CoordinatorDependencies,
        *,
        selected_sound: Optional[AmbientSound] = None,
        executor: Optional[concurrent.futures.Executor] = None,
    ):
        self._deps = dependencies
        self._logger = dependencies.logger
        self._state = CoordinatorState(selected_sound=selected_sound)
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="focus-mode",
        )

    @property
    def selected_sound(self) -> Optional[AmbientSound]:
        return self._state.selected_sound

    @property
    def session_sound(self) -> Optional[AmbientSound]:
        active = self._state.active_session
        return active.sound if active is not None else None

    @property
    def has_pending_focus_requests(self) -> bool:
        return bool(self._state.pending_focus)

    def handle_transition(self, transition: SessionTransition) -> None:
        deps = self._deps
        deps.ui.publish_session_update(
            transition.snapshot,
            action=transition.action,
            accepted=True,
            reason=transition.current,
            previous_state=transition.previous,
        )

        route = (transition.previous, transition.current)
        if route == (STATE_IDLE, STATE_RUNNING):
            self._on_session_started(transition)
        elif route == (STATE_RUNNING, STATE_COMPLETED):
            self._on_session_completed(transition)
        elif transition.previous in ACTIVE_STATES and transition.current == STATE_IDLE:
            self._on_session_stopped(transition)
        elif route == (STATE_RUNNING, STATE_PAUSED):
            deps.audio.pause_ambient()
            self.publish_audio_state()
        elif route == (STATE_PAUSED, STATE_RUNNING):
            self._resume_ambient()
            self.publish_audio_state()

    def handle_tick(self, tick: SessionTick) -> None:
        if tick.completed:
            return
        self._deps.ui.publish_session_update(
            tick.snapshot,
            action=ACTION_TICK,
            accepted=True,
            reason=REASON_TICK,
        )

    def select_sound(self, sound: Optional[AmbientSound]) -> None:
        """Change the ambient selection; playback follows live while running.

        The sound recorded for the active session stays the one selected when
        it started.
        """
        self._state.selected_sound = sound
        if self._deps.timer.state == STATE_RUNNING:
            if sound is None:
                self._deps.audio.stop_ambient()
            else:
                self._deps.audio.play_ambient(sound)
        self._logger.info(
            "Ambient sound selected: %s",
            sound.display_name if sound is not None else "none",
        )
        self.publish_audio_state()

    def publish_audio_state(self) -> None:
        sound = self._state.selected_sound
        self._deps.ui.publish_audio_state(
            self._deps.audio,
            selected_sound=sound.value if sound is not None else None,
        )

    def process_focus_requests(self) -> None:
        """Finalize completed focus-mode requests and flag overdue ones."""
        now = self._deps.monotonic_fn()
        still_pending: list[PendingFocusRequest] = []
        for request in self._state.pending_focus:
            if request.future.done():
                self._finalize_focus_request(request)
                continue

            overdue = now - request.submitted_at >= self._deps.focus_timeout_seconds
            if overdue and not request.timeout_reported:
                request.timeout_reported = True
                self._advise(
                    ADVISORY_FOCUS_MODE,
                    f"Focus mode {request.operation} did not finish within "
                    f"{self._deps.focus_timeout_seconds:.2f}s",
                )
            still_pending.append(request)
        self._state.pending_focus = still_pending

    def shutdown(self) -> None:
        """Wait briefly for outstanding focus-mode requests, then release resources.

        The caller stops an active session first so its cancelled record and
        focus-mode disable go through `handle_transition()`. A mode this app
        still holds after an earlier failed disable gets one more restore
        attempt.
        """
        self._wait_for_focus_requests()

        tracker = self._deps.focus_tracker
        if (
            tracker is not None
            and self._state.active_session is None
            and tracker.owns_focus_mode
        ):
            self._logger.info("Retrying focus mode restore before exit")
            self._request_focus(FOCUS_DISABLE)
            self._wait_for_focus_requests()

        self._deps.audio.cleanup()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _wait_for_focus_requests(self) -> None:
        pending = self._state.pending_focus
        if not pending:
            return
        self._logger.info(
            "Waiting up to %.2fs for %d focus mode request(s)",
            self._deps.focus_timeout_seconds,
            len(pending),
        )
        concurrent.futures.wait(
            [request.future for request in pending],
            timeout=self._deps.focus_timeout_seconds,
        )
        for request in pending:
            if request.future.done():
                self._finalize_focus_request(request)
            else:
                self._logger.warning(
                    "Focus mode %s still pending at shutdown",
                    request.operation,
                )
        self._state.pending_focus = []

    def _on_session_started(self, transition: SessionTransition) -> None:
        deps = self._deps
        started_at = transition.snapshot.session_started_at or transition.occurred_at
        sound = self._state.selected_sound
        self._state.active_session = ActiveSession(
            started_at=started_at,
            planned_duration=transition.snapshot.selected_duration,
            sound=sound,
        )

        if sound is not None:
            deps.audio.play_ambient(sound)
            self.publish_audio_state()
        self._request_focus(FOCUS_ENABLE)

    def _on_session_completed(self, transition: SessionTransition) -> None:
        deps = self._deps
        deps.audio.stop_ambient()
        deps.audio.play_completion_chime()
        self.publish_audio_state()
        self._request_focus(FOCUS_DISABLE)
        planned = self._record_session(transition, completed=True)

        title, body = completion_message(
            planned if planned is not None else transition.snapshot.selected_duration
        )
        try:
            deps.notifier.notify(title, body)
        except Exception as error:
            self._logger.warning("Completion notification failed: %s", error)

    def _on_session_stopped(self, transition: SessionTransition) -> None:
        self._deps.audio.stop_ambient()
        self.publish_audio_state()
        self._request_focus(FOCUS_DISABLE)
        self._record_session(transition, completed=False)

    def _resume_ambient(self) -> None:
        sound = self._state.selected_sound
        if sound is None:
            return
        audio = self._deps.audio
        if audio.current_sound is sound:
            audio.resume_ambient()
        else:
            audio.play_ambient(sound)

    def _record_session(
        self,
        transition: SessionTransition,
        *,
        completed: bool,
    ) -> Optional[float]:
        """Write the history record; returns the planned duration it used."""
        active = self._state.active_session
        self._state.active_session = None
        if active is None:
            self._logger.warning(
                "Session ended without a recorded start; skipping history record"
            )
            return None

        planned = active.planned_duration
        if completed:
            remaining_at_end = 0.0
        else:
            remaining_at_end = transition.remaining_before
        record = SessionRecord(
            start_date=active.started_at,
            planned_duration=planned,
            actual_duration=max(0.0, planned - remaining_at_end),
            completed_naturally=completed,
            sound_used=active.sound.value if active.sound is not None else None,
        )

        try:
            self._deps.history.record(record)
        except HistoryStoreError as error:
            self._logger.error("Failed to save session %s: %s", record.id, error)
            self._advise(ADVISORY_HISTORY, f"Session could not be saved: {error}")
        return planned

    def _request_focus(self, operation: str) -> None:
        tracker = self._deps.focus_tracker
        if tracker is None:
            return

        call = (
            tracker.enable_focus_mode
            if operation == FOCUS_ENABLE
            else tracker.end_session
        )
        try:
            future = self._executor.submit(call)
        except RuntimeError as error:
            self._logger.error("Failed to submit focus mode %s: %s", operation, error)
            self._advise(ADVISORY_FOCUS_MODE, f"Focus mode {operation} unavailable")
            return

        self._state.pending_focus.append(
            PendingFocusRequest(
                operation=operation,
                future=future,
                submitted_at=self._deps.monotonic_fn(),
            )
        )

    def _finalize_focus_request(self, request: PendingFocusRequest) -> None:
        try:
            outcome: FocusModeOutcome = request.future.result()
        except concurrent.futures.CancelledError:
            self._logger.warning("Focus mode %s was cancelled", request.operation)
            return
        except Exception as error:
            self._logger.error(
                "Focus mode %s worker failed: %s",
                request.operation,
                error,
                exc_info=True,
            )
            self._advise(ADVISORY_FOCUS_MODE, f"Focus mode {request.operation} failed")
            return

        if request.timeout_reported:
            self._logger.info(
                "Focus mode %s finished after timeout (succeeded=%s)",
                request.operation,
                outcome.succeeded,
            )
        if not outcome.succeeded:
            self._advise(
                ADVISORY_FOCUS_MODE,
                f"Focus mode {request.operation} failed: {outcome.message}",
            )
            return

        tracker = self._deps.focus_tracker
        if outcome.changed and tracker is not None:
            self._deps.ui.publish_focus_mode_state(tracker.symmetry_state)

    def _advise(self, source: str, message: str) -> None:
        self._logger.warning("Advisory [%s]: %s", source, message)
        self._deps.ui.publish_advisory(source, message)
