"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_CONFIG_FILE = "config.toml"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class LoggingSettings:
    """Root log level from `[logging]`."""
    level: str = "INFO"


@dataclass(frozen=True)
class SessionSettings:
    """Session defaults from `[session]`."""
    default_duration_seconds: float = 3600.0
    default_sound: str = ""


@dataclass(frozen=True)
class AudioSettings:
    """Ambient audio assets and output from `[audio]`."""
    enabled: bool = True
    sounds_dir: str = ""
    volume: float = 0.5
    output_device: Optional[int] = None


@dataclass(frozen=True)
class FocusModeSettings:
    """Do-not-disturb integration from `[focus_mode]`."""
    enabled: bool = True
    backend: str = "memory"
    enable_shortcut: str = "EnableFlowFocus"
    disable_shortcut: str = "DisableFlowFocus"
    timeout_seconds: float = 0.5


@dataclass(frozen=True)
class HistorySettings:
    """Session history store from `[history]`; an empty `db_path` uses the user data dir."""
    backend: str = "sqlite"
    db_path: str = ""


@dataclass(frozen=True)
class PreferencesSettings:
    """Remembered user choices from `[preferences]`; an empty `path` uses the user data dir."""
    backend: str = "json"
    path: str = ""


@dataclass(frozen=True)
class UIServerSettings:
    """Built-in UI server settings from `[ui_server]`."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8765
    index_file: str = ""


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    audio: AudioSettings = field(default_factory=AudioSettings)
    focus_mode: FocusModeSettings = field(default_factory=FocusModeSettings)
    history: HistorySettings = field(default_factory=HistorySettings)
    preferences: PreferencesSettings = field(default_factory=PreferencesSettings)
    ui_server: UIServerSettings = field(default_factory=UIServerSettings)
    source_file: str = ""
