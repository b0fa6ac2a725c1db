"""Configuration model for focus-mode backends and request timeouts."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import FocusModeConfigurationError

BACKEND_MEMORY = "memory"
BACKEND_SHORTCUTS = "shortcuts"
_BACKENDS = {BACKEND_MEMORY, BACKEND_SHORTCUTS}


@dataclass(frozen=True)
class FocusModeConfig:
    """Validated focus-mode settings derived from `[focus_mode]`."""
    enabled: bool = True
    backend: str = BACKEND_MEMORY
    enable_shortcut: str = "EnableFlowFocus"
    disable_shortcut: str = "DisableFlowFocus"
    timeout_seconds: float = 0.5

    def __post_init__(self) -> None:
        if self.backend not in _BACKENDS:
            allowed = ", ".join(sorted(_BACKENDS))
            raise FocusModeConfigurationError(
                f"focus_mode.backend must be one of: {allowed}"
            )
        if self.timeout_seconds <= 0:
            raise FocusModeConfigurationError(
                f"focus_mode.timeout_seconds must be positive, got: {self.timeout_seconds}"
            )
        if self.backend == BACKEND_SHORTCUTS:
            if not self.enable_shortcut.strip() or not self.disable_shortcut.strip():
                raise FocusModeConfigurationError(
                    "focus_mode shortcut names cannot be empty"
                )

    @classmethod
    def from_settings(cls, settings) -> "FocusModeConfig":
        backend = (settings.backend or BACKEND_MEMORY).strip().lower()
        return cls(
            enabled=bool(settings.enabled),
            backend=backend,
            enable_shortcut=settings.enable_shortcut,
            disable_shortcut=settings.disable_shortcut,
            timeout_seconds=float(settings.timeout_seconds),
        )
