"""Do-not-disturb integration with session-scoped symmetry tracking."""

from .backends import InMemoryFocusMode, ShortcutsFocusMode, build_focus_mode_backend
from .config import FocusModeConfig
from .contracts import FocusModeLike, FocusModeSymmetryState
from .errors import (
    FocusModeCommandError,
    FocusModeConfigurationError,
    FocusModeError,
    FocusModePermissionError,
)
from .tracker import FocusModeOutcome, FocusModeSymmetryTracker

__all__ = [
    "FocusModeCommandError",
    "FocusModeConfig",
    "FocusModeConfigurationError",
    "FocusModeError",
    "FocusModeLike",
    "FocusModeOutcome",
    "FocusModePermissionError",
    "FocusModeSymmetryState",
    "FocusModeSymmetryTracker",
    "InMemoryFocusMode",
    "ShortcutsFocusMode",
    "build_focus_mode_backend",
]
