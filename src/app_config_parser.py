"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    AppConfig,
    AppConfigurationError,
    AudioSettings,
    FocusModeSettings,
    HistorySettings,
    LoggingSettings,
    PreferencesSettings,
    SessionSettings,
    UIServerSettings,
)

_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_DEFAULT_SOUNDS_DIR = "sounds"


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    return AppConfig(
        logging=_parse_logging_settings(_section(raw, "logging")),
        session=_parse_session_settings(_section(raw, "session")),
        audio=_parse_audio_settings(_section(raw, "audio"), base_dir=base_dir),
        focus_mode=_parse_focus_mode_settings(_section(raw, "focus_mode")),
        history=_parse_history_settings(_section(raw, "history"), base_dir=base_dir),
        preferences=_parse_preferences_settings(
            _section(raw, "preferences"),
            base_dir=base_dir,
        ),
        ui_server=_parse_ui_server_settings(_section(raw, "ui_server"), base_dir=base_dir),
        source_file=source_file,
    )


def _parse_logging_settings(section: Mapping[str, Any]) -> LoggingSettings:
    level = _as_str(section.get("level", "INFO"), "logging.level").upper() or "INFO"
    if level not in _ALLOWED_LOG_LEVELS:
        allowed = ", ".join(sorted(_ALLOWED_LOG_LEVELS))
        raise AppConfigurationError(f"logging.level must be one of: {allowed}.")
    return LoggingSettings(level=level)


def _parse_session_settings(section: Mapping[str, Any]) -> SessionSettings:
    duration = _as_float(
        section.get("default_duration_seconds", 3600.0),
        "session.default_duration_seconds",
    )
    if duration <= 0:
        raise AppConfigurationError(
            "session.default_duration_seconds must be greater than zero."
        )
    return SessionSettings(
        default_duration_seconds=duration,
        default_sound=_as_str(
            section.get("default_sound", ""),
            "session.default_sound",
        ).lower(),
    )


def _parse_audio_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> AudioSettings:
    sounds_dir = _as_str(
        section.get("sounds_dir", _DEFAULT_SOUNDS_DIR),
        "audio.sounds_dir",
    )
    return AudioSettings(
        enabled=_as_bool(section.get("enabled", True), "audio.enabled"),
        sounds_dir=_resolve_path(base_dir, sounds_dir),
        volume=_as_float(section.get("volume", 0.5), "audio.volume"),
        output_device=(
            _as_int(section.get("output_device"), "audio.output_device")
            if "output_device" in section
            else None
        ),
    )


def _parse_focus_mode_settings(section: Mapping[str, Any]) -> FocusModeSettings:
    return FocusModeSettings(
        enabled=_as_bool(section.get("enabled", True), "focus_mode.enabled"),
        backend=_as_str(section.get("backend", "memory"), "focus_mode.backend").lower(),
        enable_shortcut=_as_str(
            section.get("enable_shortcut", "EnableFlowFocus"),
            "focus_mode.enable_shortcut",
        ),
        disable_shortcut=_as_str(
            section.get("disable_shortcut", "DisableFlowFocus"),
            "focus_mode.disable_shortcut",
        ),
        timeout_seconds=_as_float(
            section.get("timeout_seconds", 0.5),
            "focus_mode.timeout_seconds",
        ),
    )


def _parse_history_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> HistorySettings:
    db_path = _as_str(section.get("db_path", ""), "history.db_path")
    return HistorySettings(
        backend=_as_str(section.get("backend", "sqlite"), "history.backend").lower(),
        db_path=_resolve_path(base_dir, db_path) if db_path else "",
    )


def _parse_preferences_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> PreferencesSettings:
    path = _as_str(section.get("path", ""), "preferences.path")
    return PreferencesSettings(
        backend=_as_str(section.get("backend", "json"), "preferences.backend").lower(),
        path=_resolve_path(base_dir, path) if path else "",
    )


def _parse_ui_server_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> UIServerSettings:
    index_file = _as_str(section.get("index_file", ""), "ui_server.index_file")
    return UIServerSettings(
        enabled=_as_bool(section.get("enabled", True), "ui_server.enabled"),
        host=_as_str(section.get("host", "127.0.0.1"), "ui_server.host"),
        port=_as_int(section.get("port", 8765), "ui_server.port"),
        index_file=_resolve_path(base_dir, index_file) if index_file else "",
    )


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    raise AppConfigurationError(f"{field} must be a float.")


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
