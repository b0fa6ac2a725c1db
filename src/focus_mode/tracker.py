"""Symmetric enable/disable bookkeeping for do-not-disturb around a session."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from .contracts import FocusModeLike, FocusModeSymmetryState
from .errors import FocusModeError

OPERATION_ENABLE = "enable"
OPERATION_DISABLE = "disable"


@dataclass(frozen=True)
class FocusModeOutcome:
    """Result of one tracker request, reported back to the coordinator."""
    operation: str
    succeeded: bool
    changed: bool
    message: str = ""


class FocusModeSymmetryTracker:
    """Guarantees the app never leaves do-not-disturb different from how it found it.

    `enable_focus_mode()` snapshots the external state before touching it and
    is idempotent while this session holds the mode. `disable_focus_mode()`
    only acts when this session enabled the mode. If the mode was already on
    when the session began, the tracker leaves it alone in both directions.
    """

    def __init__(
        self,
        focus_mode: FocusModeLike,
        logger: Optional[logging.Logger] = None,
    ):
        self._focus_mode = focus_mode
        self._logger = logger or logging.getLogger("focus_mode")
        self._lock = threading.Lock()
        self._enabled_by_this_session = False
        self._state_before_session = False

    @property
    def symmetry_state(self) -> FocusModeSymmetryState:
        with self._lock:
            return FocusModeSymmetryState(
                enabled_by_this_session=self._enabled_by_this_session,
                state_before_session=self._state_before_session,
            )

    @property
    def owns_focus_mode(self) -> bool:
        with self._lock:
            return self._enabled_by_this_session

    def is_currently_enabled(self) -> bool:
        return self._focus_mode.is_currently_enabled()

    def enable_focus_mode(self) -> FocusModeOutcome:
        with self._lock:
            if self._enabled_by_this_session:
                return FocusModeOutcome(OPERATION_ENABLE, True, False, "already enabled")

            try:
                self._state_before_session = bool(
                    self._focus_mode.is_currently_enabled()
                )
                if self._state_before_session:
                    self._logger.info(
                        "Focus mode already enabled before session; leaving it unchanged"
                    )
                    return FocusModeOutcome(
                        OPERATION_ENABLE,
                        True,
                        False,
                        "enabled outside this session",
                    )

                if not self._focus_mode.enable():
                    return self._failure(OPERATION_ENABLE, "backend reported failure")
            except FocusModeError as error:
                return self._failure(OPERATION_ENABLE, str(error))

            self._enabled_by_this_session = True
            self._logger.info("Focus mode enabled for session")
            return FocusModeOutcome(OPERATION_ENABLE, True, True)

    def disable_focus_mode(self) -> FocusModeOutcome:
        with self._lock:
            if not self._enabled_by_this_session:
                return FocusModeOutcome(
                    OPERATION_DISABLE,
                    True,
                    False,
                    "not enabled by this session",
                )

            try:
                if not self._focus_mode.disable():
                    return self._failure(OPERATION_DISABLE, "backend reported failure")
            except FocusModeError as error:
                return self._failure(OPERATION_DISABLE, str(error))

            self._enabled_by_this_session = False
            self._logger.info("Focus mode restored after session")
            return FocusModeOutcome(OPERATION_DISABLE, True, True)

    def end_session(self) -> FocusModeOutcome:
        """Disable the mode if this session enabled it, then clear the snapshot.

        A failed disable keeps ownership. The next session reuses the mode that
        is still on and retries the restore when it ends; the coordinator also
        retries at shutdown while `owns_focus_mode` is true.
        """
        outcome = self.disable_focus_mode()
        if outcome.succeeded:
            self.reset()
        else:
            self._logger.warning("Focus mode still held; restore will be retried")
        return outcome

    def reset(self) -> None:
        with self._lock:
            self._enabled_by_this_session = False
            self._state_before_session = False

    def _failure(self, operation: str, message: str) -> FocusModeOutcome:
        self._logger.warning("Focus mode %s failed: %s", operation, message)
        return FocusModeOutcome(operation, False, False, message)
