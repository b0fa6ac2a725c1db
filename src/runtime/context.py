"""Explicit dependency context built once at process start."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from queue import Queue
from typing import Any, Optional

from app_config import AppConfig
from audio import AmbientSound, AudioConfig, AudioService, build_audio_service
from focus_mode import FocusModeConfig, FocusModeSymmetryTracker, build_focus_mode_backend
from history import HistoryConfig, HistoryRecorder, build_session_store
from preferences import (
    PreferencesConfig,
    PreferencesManager,
    UserPreferences,
    build_preferences_store,
)
from session import QueueTransitionPublisher, SessionTimer, SessionTransition

from .commands import RuntimeCommandDispatcher
from .coordinator import CoordinatorDependencies, SessionCoordinator
from .notifications import LogNotifier, NotifierLike, UINotifier
from .ui import RuntimeUIPublisher, UIServerLike


@dataclass(frozen=True)
class RuntimeContext:
    """Timer, coordinator, collaborators, and the channels that connect them."""
    logger: logging.Logger
    app_config: AppConfig
    timer: SessionTimer
    transitions: Queue[SessionTransition]
    commands: Queue[dict[str, Any]]
    coordinator: SessionCoordinator
    dispatcher: RuntimeCommandDispatcher
    audio: AudioService
    history: HistoryRecorder
    preferences: PreferencesManager
    focus_tracker: Optional[FocusModeSymmetryTracker]
    ui: RuntimeUIPublisher
    ui_server: Optional[Any] = None


def build_runtime_context(
    app_config: AppConfig,
    *,
    logger: logging.Logger,
    ui_server: Optional[UIServerLike] = None,
) -> RuntimeContext:
    """Wire every component from configuration.

    Raises the collaborator configuration errors (`FocusModeConfigurationError`,
    `HistoryConfigurationError`, `AudioConfigurationError`,
    `PreferencesConfigurationError`) and `HistoryStoreError` when the store
    cannot be opened. The last-used duration, sound and volume override the
    configured session defaults.
    """
    focus_config = FocusModeConfig.from_settings(app_config.focus_mode)
    history_config = HistoryConfig.from_settings(app_config.history)
    audio_config = AudioConfig.from_settings(app_config.audio)
    preferences_config = PreferencesConfig.from_settings(app_config.preferences)

    preferences_logger = logging.getLogger("preferences")
    preferences = PreferencesManager(
        build_preferences_store(preferences_config, logger=preferences_logger),
        defaults=UserPreferences(
            last_duration=app_config.session.default_duration_seconds,
            last_sound=app_config.session.default_sound,
            last_volume=audio_config.volume,
        ),
        logger=preferences_logger,
    )
    remembered = preferences.load()

    ui = RuntimeUIPublisher(ui_server)
    transitions: Queue[SessionTransition] = Queue()
    commands: Queue[dict[str, Any]] = Queue()

    timer = SessionTimer(
        duration_seconds=remembered.last_duration,
        publisher=QueueTransitionPublisher(transitions),
        logger=logging.getLogger("session"),
    )

    focus_logger = logging.getLogger("focus_mode")
    focus_backend = build_focus_mode_backend(focus_config, logger=focus_logger)
    focus_tracker = (
        FocusModeSymmetryTracker(focus_backend, logger=focus_logger)
        if focus_backend is not None
        else None
    )

    history_logger = logging.getLogger("history")
    history = HistoryRecorder(
        build_session_store(history_config, logger=history_logger),
        logger=history_logger,
    )

    audio = build_audio_service(audio_config, logger=logging.getLogger("audio"))
    audio.set_volume(remembered.last_volume)

    notifier: NotifierLike
    notifications_logger = logging.getLogger("notifications")
    if ui_server is not None:
        notifier = UINotifier(ui, logger=notifications_logger)
    else:
        notifier = LogNotifier(notifications_logger)

    default_sound = AmbientSound.from_id(remembered.last_sound)
    if remembered.last_sound and default_sound is None:
        logger.warning(
            "Unknown ambient sound '%s'; starting without ambient sound",
            remembered.last_sound,
        )

    coordinator = SessionCoordinator(
        CoordinatorDependencies(
            timer=timer,
            history=history,
            audio=audio,
            notifier=notifier,
            ui=ui,
            logger=logging.getLogger("coordinator"),
            focus_tracker=focus_tracker,
            focus_timeout_seconds=focus_config.timeout_seconds,
        ),
        selected_sound=default_sound,
    )
    dispatcher = RuntimeCommandDispatcher(
        logger=logging.getLogger("commands"),
        timer=timer,
        coordinator=coordinator,
        audio=audio,
        history=history,
        ui=ui,
        preferences=preferences,
    )

    return RuntimeContext(
        logger=logger,
        app_config=app_config,
        timer=timer,
        transitions=transitions,
        commands=commands,
        coordinator=coordinator,
        dispatcher=dispatcher,
        audio=audio,
        history=history,
        preferences=preferences,
        focus_tracker=focus_tracker,
        ui=ui,
        ui_server=ui_server,
    )
