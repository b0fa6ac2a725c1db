"""Dispatcher that applies client commands to the session timer and collaborators."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from audio import AmbientSound, AudioService
from contracts.ui_protocol import (
    ADVISORY_HISTORY,
    ADVISORY_PREFERENCES,
    COMMAND_PAUSE,
    COMMAND_RESET,
    COMMAND_RESET_PREFERENCES,
    COMMAND_RESUME,
    COMMAND_SELECT_SOUND,
    COMMAND_SET_DURATION,
    COMMAND_SET_VOLUME,
    COMMAND_START,
    COMMAND_STATISTICS,
    COMMAND_STOP,
    COMMAND_TOGGLE_MUTE,
)
from history import HistoryRecorder, HistoryStoreError, TimePeriod
from preferences import PreferencesManager
from session import DurationPreset, SessionTimer
from session.constants import ACTION_SET_DURATION

from .coordinator import SessionCoordinator
from .ui import RuntimeUIPublisher

TIMER_COMMANDS = frozenset(
    {COMMAND_START, COMMAND_PAUSE, COMMAND_RESUME, COMMAND_STOP, COMMAND_RESET}
)

REASON_INVALID_ARGUMENTS = "invalid_arguments"
REASON_UNKNOWN_SOUND = "unknown_sound"
REASON_UNKNOWN_PERIOD = "unknown_period"
REASON_HISTORY_UNAVAILABLE = "history_unavailable"
REASON_UNSUPPORTED_COMMAND = "unsupported_command"
REASON_SESSION_ACTIVE = "session_active"
REASON_OK = "ok"


@dataclass(frozen=True)
class CommandOutcome:
    command: str
    accepted: bool
    reason: str


class RuntimeCommandDispatcher:
    """Routes `{"command": ..., ...}` payloads to timer, audio, and history handlers.

    Timer transitions are announced by the coordinator when it drains the
    transition queue; this dispatcher only publishes rejections and changes
    that do not produce a transition. Duration, sound and volume changes are
    written through to `preferences` when one is configured.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        timer: SessionTimer,
        coordinator: SessionCoordinator,
        audio: AudioService,
        history: HistoryRecorder,
        ui: RuntimeUIPublisher,
        preferences: Optional[PreferencesManager] = None,
    ):
        self._logger = logger
        self._timer = timer
        self._coordinator = coordinator
        self._audio = audio
        self._history = history
        self._ui = ui
        self._preferences = preferences

    def handle_command(self, payload: dict[str, Any]) -> CommandOutcome:
        raw_name = payload.get("command")
        name = raw_name.strip().lower() if isinstance(raw_name, str) else ""

        if name in TIMER_COMMANDS:
            outcome = self._handle_timer_command(name)
        elif name == COMMAND_SET_DURATION:
            outcome = self._handle_set_duration(payload)
        elif name == COMMAND_SELECT_SOUND:
            outcome = self._handle_select_sound(payload)
        elif name == COMMAND_SET_VOLUME:
            outcome = self._handle_set_volume(payload)
        elif name == COMMAND_TOGGLE_MUTE:
            muted = self._audio.toggle_mute()
            self._logger.info("Audio %s", "muted" if muted else "unmuted")
            self._coordinator.publish_audio_state()
            outcome = CommandOutcome(name, True, REASON_OK)
        elif name == COMMAND_STATISTICS:
            outcome = self._handle_statistics(payload)
        elif name == COMMAND_RESET_PREFERENCES:
            outcome = self._handle_reset_preferences()
        else:
            self._logger.warning("Unsupported command: %s", raw_name)
            outcome = CommandOutcome(name or str(raw_name), False, REASON_UNSUPPORTED_COMMAND)

        self._ui.publish_command_result(
            outcome.command,
            accepted=outcome.accepted,
            reason=outcome.reason,
        )
        return outcome

    def _handle_timer_command(self, name: str) -> CommandOutcome:
        result = self._timer.apply(name)
        if not result.accepted:
            self._logger.info("Ignored %s: %s", name, result.reason)
            self._ui.publish_session_update(
                result.snapshot,
                action=name,
                accepted=False,
                reason=result.reason,
            )
        return CommandOutcome(name, result.accepted, result.reason)

    def _handle_set_duration(self, payload: dict[str, Any]) -> CommandOutcome:
        duration = _duration_argument(payload)
        if duration is None:
            return CommandOutcome(COMMAND_SET_DURATION, False, REASON_INVALID_ARGUMENTS)

        snapshot = self._timer.snapshot()
        if snapshot.is_active:
            # The countdown in progress keeps the duration it started with.
            self._ui.publish_session_update(
                snapshot,
                action=ACTION_SET_DURATION,
                accepted=False,
                reason=REASON_SESSION_ACTIVE,
            )
            return CommandOutcome(COMMAND_SET_DURATION, False, REASON_SESSION_ACTIVE)

        result = self._timer.set_duration(duration)
        self._ui.publish_session_update(
            result.snapshot,
            action=ACTION_SET_DURATION,
            accepted=result.accepted,
            reason=result.reason,
        )
        if result.accepted and self._preferences is not None:
            self._remember(
                self._preferences.set_last_duration(result.snapshot.selected_duration)
            )
        return CommandOutcome(COMMAND_SET_DURATION, result.accepted, result.reason)

    def _handle_select_sound(self, payload: dict[str, Any]) -> CommandOutcome:
        raw_sound = payload.get("sound")
        if raw_sound is not None and not isinstance(raw_sound, str):
            return CommandOutcome(COMMAND_SELECT_SOUND, False, REASON_INVALID_ARGUMENTS)

        sound = AmbientSound.from_id(raw_sound)
        if raw_sound and raw_sound.strip() and sound is None:
            return CommandOutcome(COMMAND_SELECT_SOUND, False, REASON_UNKNOWN_SOUND)

        self._coordinator.select_sound(sound)
        if self._preferences is not None:
            self._remember(
                self._preferences.set_last_sound(sound.value if sound is not None else None)
            )
        return CommandOutcome(COMMAND_SELECT_SOUND, True, REASON_OK)

    def _handle_set_volume(self, payload: dict[str, Any]) -> CommandOutcome:
        raw_volume = payload.get("volume")
        if isinstance(raw_volume, bool) or not isinstance(raw_volume, (int, float)):
            return CommandOutcome(COMMAND_SET_VOLUME, False, REASON_INVALID_ARGUMENTS)

        volume = self._audio.set_volume(raw_volume)
        self._logger.info("Volume set to %.2f", volume)
        self._coordinator.publish_audio_state()
        if self._preferences is not None:
            self._remember(self._preferences.set_last_volume(volume))
        return CommandOutcome(COMMAND_SET_VOLUME, True, REASON_OK)

    def _handle_reset_preferences(self) -> CommandOutcome:
        preferences = self._preferences
        if preferences is None:
            return CommandOutcome(COMMAND_RESET_PREFERENCES, False, REASON_UNSUPPORTED_COMMAND)

        self._remember(preferences.reset_to_defaults())
        defaults = preferences.current

        snapshot = self._timer.snapshot()
        if not snapshot.is_active:
            result = self._timer.set_duration(defaults.last_duration)
            self._ui.publish_session_update(
                result.snapshot,
                action=ACTION_SET_DURATION,
                accepted=result.accepted,
                reason=result.reason,
            )
        self._audio.set_volume(defaults.last_volume)
        self._coordinator.select_sound(AmbientSound.from_id(defaults.last_sound))
        return CommandOutcome(COMMAND_RESET_PREFERENCES, True, REASON_OK)

    def _remember(self, saved: bool) -> None:
        if not saved:
            self._ui.publish_advisory(ADVISORY_PREFERENCES, "Preferences could not be saved")

    def _handle_statistics(self, payload: dict[str, Any]) -> CommandOutcome:
        raw_period = payload.get("period", TimePeriod.ALL_TIME.value)
        try:
            period = TimePeriod(str(raw_period).strip().lower())
        except ValueError:
            return CommandOutcome(COMMAND_STATISTICS, False, REASON_UNKNOWN_PERIOD)

        try:
            statistics = self._history.statistics(period)
        except HistoryStoreError as error:
            self._logger.error("Failed to load statistics: %s", error)
            self._ui.publish_advisory(ADVISORY_HISTORY, f"History unavailable: {error}")
            return CommandOutcome(COMMAND_STATISTICS, False, REASON_HISTORY_UNAVAILABLE)

        self._ui.publish_statistics(period.value, statistics)
        return CommandOutcome(COMMAND_STATISTICS, True, REASON_OK)


def _duration_argument(payload: dict[str, Any]) -> Optional[float | DurationPreset]:
    """Accept `{"preset": "2h"}` or a numeric `{"seconds": ...}`."""
    preset_name = payload.get("preset")
    if isinstance(preset_name, str) and preset_name.strip():
        return DurationPreset.from_short_name(preset_name)

    seconds = payload.get("seconds")
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    if not math.isfinite(seconds):
        return None
    return float(seconds)
