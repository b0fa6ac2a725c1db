"""Configuration model for the user preferences store."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

from .errors import PreferencesConfigurationError

BACKEND_JSON = "json"
BACKEND_MEMORY = "memory"
_BACKENDS = {BACKEND_JSON, BACKEND_MEMORY}
_FILE_NAME = "preferences.json"


def default_preferences_path() -> Path:
    return Path(user_data_dir("flow-timer", "flow-timer")) / _FILE_NAME


@dataclass(frozen=True)
class PreferencesConfig:
    """Validated preferences settings derived from `[preferences]`."""
    backend: str = BACKEND_JSON
    path: str = ""

    def __post_init__(self) -> None:
        if self.backend not in _BACKENDS:
            allowed = ", ".join(sorted(_BACKENDS))
            raise PreferencesConfigurationError(
                f"preferences.backend must be one of: {allowed}"
            )
        if self.backend == BACKEND_JSON and not self.path:
            raise PreferencesConfigurationError("preferences.path cannot be empty")

    @classmethod
    def from_settings(cls, settings) -> "PreferencesConfig":
        backend = (settings.backend or BACKEND_JSON).strip().lower()
        path = (settings.path or "").strip()
        if backend == BACKEND_JSON and not path:
            path = str(default_preferences_path())
        return cls(backend=backend, path=path)
