"""Do-not-disturb backends and the factory that selects one from configuration."""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import Callable, Optional, Sequence

from .config import BACKEND_SHORTCUTS, FocusModeConfig
from .contracts import FocusModeLike
from .errors import FocusModeCommandError, FocusModePermissionError

_PERMISSION_MARKERS = ("not allowed", "not authorized", "-1743")

CommandRunner = Callable[..., subprocess.CompletedProcess]


class InMemoryFocusMode:
    """Focus mode kept as a process-local flag.

    Used when no OS integration is configured and as the test double for the
    symmetry tracker.
    """

    def __init__(self, *, initially_enabled: bool = False):
        self._enabled = initially_enabled
        self._lock = threading.Lock()

    def enable(self) -> bool:
        with self._lock:
            self._enabled = True
            return True

    def disable(self) -> bool:
        with self._lock:
            self._enabled = False
            return True

    def is_currently_enabled(self) -> bool:
        with self._lock:
            return self._enabled


class ShortcutsFocusMode:
    """Toggles do-not-disturb by running user-defined Shortcuts automations."""

    def __init__(
        self,
        *,
        enable_shortcut: str,
        disable_shortcut: str,
        timeout_seconds: float,
        logger: Optional[logging.Logger] = None,
        runner: Optional[CommandRunner] = None,
    ):
        self._enable_shortcut = enable_shortcut
        self._disable_shortcut = disable_shortcut
        self._timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger("focus_mode.shortcuts")
        self._run = runner or subprocess.run
        self._enabled = False
        self._lock = threading.Lock()

    def enable(self) -> bool:
        self._run_shortcut(self._enable_shortcut)
        with self._lock:
            self._enabled = True
        return True

    def disable(self) -> bool:
        self._run_shortcut(self._disable_shortcut)
        with self._lock:
            self._enabled = False
        return True

    def is_currently_enabled(self) -> bool:
        # Shortcuts cannot query the OS state; report what this process set.
        with self._lock:
            return self._enabled

    def _run_shortcut(self, name: str) -> None:
        command: Sequence[str] = ("shortcuts", "run", name)
        self._logger.debug("Running shortcut: %s", name)
        try:
            completed = self._run(
                list(command),
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
                check=False,
            )
        except FileNotFoundError as error:
            raise FocusModeCommandError(
                "The 'shortcuts' command is not available on this system."
            ) from error
        except subprocess.TimeoutExpired as error:
            raise FocusModeCommandError(
                f"Shortcut '{name}' did not finish within {self._timeout_seconds:.2f}s"
            ) from error

        if completed.returncode == 0:
            return

        stderr = (completed.stderr or "").strip()
        if any(marker in stderr.lower() for marker in _PERMISSION_MARKERS):
            raise FocusModePermissionError(
                "Permission denied. Grant automation permissions to run "
                f"shortcut '{name}'."
            )
        raise FocusModeCommandError(
            f"Shortcut '{name}' failed (exit={completed.returncode}): "
            f"{stderr or 'no output'}"
        )


def build_focus_mode_backend(
    config: FocusModeConfig,
    *,
    logger: logging.Logger,
) -> Optional[FocusModeLike]:
    """Return the configured backend, or `None` when focus mode is disabled."""
    if not config.enabled:
        logger.info("Focus mode integration disabled (focus_mode.enabled=false)")
        return None

    if config.backend == BACKEND_SHORTCUTS:
        logger.info(
            "Focus mode via Shortcuts: enable=%s disable=%s",
            config.enable_shortcut,
            config.disable_shortcut,
        )
        return ShortcutsFocusMode(
            enable_shortcut=config.enable_shortcut,
            disable_shortcut=config.disable_shortcut,
            timeout_seconds=config.timeout_seconds,
            logger=logger.getChild("shortcuts"),
        )

    logger.info("Focus mode kept in memory (no OS integration configured)")
    return InMemoryFocusMode()
