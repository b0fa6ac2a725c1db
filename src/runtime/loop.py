"""Cooperative runtime loop that drives the timer, transitions, and client commands."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from queue import Empty
from typing import Callable, Optional

from session.constants import ACTION_SYNC, REASON_STARTUP

from .context import RuntimeContext

POLL_INTERVAL_SECONDS = 0.25


@dataclass(frozen=True)
class RuntimeHooks:
    """Injectable lifecycle hooks used by runtime startup and shutdown flow."""
    setup_signal_handlers: Callable[[Callable[[], None]], None]


class RuntimeEngine:
    """Single-threaded owner of every timer mutation.

    Each iteration fires due ticks, hands queued transitions to the
    coordinator in order, finalizes focus-mode requests, and then waits for
    the next client command or tick deadline, whichever comes first.
    """
    def __init__(
        self,
        context: RuntimeContext,
        hooks: Optional[RuntimeHooks] = None,
    ):
        self._context = context
        self._hooks = hooks
        self._logger = context.logger
        self._stop_requested = threading.Event()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def request_stop(self) -> None:
        self._stop_requested.set()

    def run(self) -> int:
        try:
            if self._hooks is not None:
                self._hooks.setup_signal_handlers(self.request_stop)

            self._publish_startup_sync()
            self._logger.info("Ready! Waiting for session commands ...")

            while not self._stop_requested.is_set():
                self.run_once()
            self._logger.info("Shutdown requested.")
            return 0

        except KeyboardInterrupt:
            self._logger.info("Shutdown requested by keyboard interrupt.")
            return 0
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            return 1
        finally:
            self._shutdown()

    def run_once(self, timeout_seconds: Optional[float] = None) -> None:
        self._emit_timer_ticks()
        self._drain_transitions()
        self._context.coordinator.process_focus_requests()

        command = self._poll_command(self._wait_timeout(timeout_seconds))
        if command is not None:
            self._context.dispatcher.handle_command(command)
            self._drain_transitions()

    def _publish_startup_sync(self) -> None:
        self._context.ui.publish_session_update(
            self._context.timer.snapshot(),
            action=ACTION_SYNC,
            accepted=True,
            reason=REASON_STARTUP,
        )
        self._context.coordinator.publish_audio_state()

    def _emit_timer_ticks(self) -> None:
        tick = self._context.timer.poll()
        if tick is not None:
            self._context.coordinator.handle_tick(tick)

    def _drain_transitions(self) -> None:
        transitions = self._context.transitions
        while True:
            try:
                transition = transitions.get_nowait()
            except Empty:
                return
            self._context.coordinator.handle_transition(transition)

    def _wait_timeout(self, timeout_seconds: Optional[float]) -> float:
        if timeout_seconds is not None:
            return timeout_seconds
        next_tick = self._context.timer.seconds_until_next_tick()
        if next_tick is None:
            return POLL_INTERVAL_SECONDS
        return min(POLL_INTERVAL_SECONDS, next_tick)

    def _poll_command(self, timeout_seconds: float) -> Optional[dict]:
        try:
            if timeout_seconds <= 0:
                return self._context.commands.get_nowait()
            return self._context.commands.get(timeout=timeout_seconds)
        except Empty:
            return None

    def _shutdown(self) -> None:
        context = self._context
        try:
            result = context.timer.stop()
            if result.accepted:
                self._logger.info("Active session cancelled by shutdown")
            self._drain_transitions()
        except Exception as error:
            self._logger.error("Error ending active session: %s", error, exc_info=True)

        self._logger.info("Stopping coordinator...")
        try:
            context.coordinator.shutdown()
        except Exception as error:
            self._logger.error("Error stopping coordinator: %s", error, exc_info=True)

        ui_server = context.ui_server
        if ui_server is not None:
            self._logger.info("Stopping UI server...")
            try:
                ui_server.stop(timeout_seconds=5.0)
            except Exception as error:
                self._logger.error("Error stopping UI server: %s", error, exc_info=True)
