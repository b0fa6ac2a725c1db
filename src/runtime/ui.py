from __future__ import annotations

from typing import Any, Optional, Protocol

from audio import AudioService
from contracts.ui_protocol import (
    EVENT_ADVISORY,
    EVENT_AUDIO,
    EVENT_COMMAND_RESULT,
    EVENT_FOCUS_MODE,
    EVENT_NOTIFICATION,
    EVENT_SESSION,
    EVENT_STATISTICS,
)
from focus_mode import FocusModeSymmetryState
from history import SessionStatistics
from session import SessionSnapshot, extract_digits


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...


class RuntimeUIPublisher:
    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def publish_session_update(
        self,
        snapshot: SessionSnapshot,
        *,
        action: str,
        accepted: Optional[bool] = None,
        reason: str = "",
        previous_state: Optional[str] = None,
    ) -> None:
        payload: dict[str, Any] = {
            "action": action,
            "state": snapshot.state,
            "selected_seconds": snapshot.selected_duration,
            "remaining_seconds": snapshot.remaining_time,
            "elapsed_seconds": snapshot.elapsed_time,
            "progress": round(snapshot.progress, 4),
            "display": snapshot.formatted_remaining,
            "digits": list(extract_digits(snapshot.remaining_time)),
        }
        if snapshot.session_started_at is not None:
            payload["started_at"] = snapshot.session_started_at.isoformat(
                timespec="seconds"
            )
        if previous_state:
            payload["previous_state"] = previous_state
        if accepted is not None:
            payload["accepted"] = accepted
        if reason:
            payload["reason"] = reason
        self.publish(EVENT_SESSION, **payload)

    def publish_audio_state(
        self,
        audio: AudioService,
        *,
        selected_sound: Optional[str] = None,
    ) -> None:
        current = audio.current_sound
        self.publish(
            EVENT_AUDIO,
            selected_sound=selected_sound,
            current_sound=current.value if current is not None else None,
            playing=audio.is_playing,
            volume=round(audio.volume, 3),
            muted=audio.is_muted,
        )

    def publish_focus_mode_state(self, state: FocusModeSymmetryState) -> None:
        self.publish(
            EVENT_FOCUS_MODE,
            enabled_by_this_session=state.enabled_by_this_session,
            state_before_session=state.state_before_session,
        )

    def publish_statistics(self, period: str, statistics: SessionStatistics) -> None:
        self.publish(
            EVENT_STATISTICS,
            period=period,
            count=statistics.count,
            completed_count=statistics.completed_count,
            total_actual_seconds=statistics.total_actual_duration,
        )

    def publish_notification(self, title: str, body: str) -> None:
        self.publish(EVENT_NOTIFICATION, title=title, body=body)

    def publish_advisory(self, source: str, message: str) -> None:
        self.publish(EVENT_ADVISORY, source=source, message=message)

    def publish_command_result(
        self,
        command: str,
        *,
        accepted: bool,
        reason: str = "",
    ) -> None:
        payload: dict[str, Any] = {"command": command, "accepted": accepted}
        if reason:
            payload["reason"] = reason
        self.publish(EVENT_COMMAND_RESULT, **payload)
