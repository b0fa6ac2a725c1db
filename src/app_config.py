from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older runtimes
    import tomli as tomllib  # type: ignore

from app_config_parser import parse_app_config
from app_config_schema import (
    DEFAULT_CONFIG_FILE,
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

CONFIG_PATH_ENV = "APP_CONFIG_FILE"

__all__ = [
    "AppConfig",
    "AppConfigurationError",
    "AudioSettings",
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_FILE",
    "FocusModeSettings",
    "HistorySettings",
    "LoggingSettings",
    "PreferencesSettings",
    "SessionSettings",
    "UIServerSettings",
    "load_app_config",
    "resolve_config_path",
]


def resolve_config_path(
    config_path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Path:
    env = environ if environ is not None else os.environ
    raw = config_path or env.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_FILE
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def load_app_config(
    config_path: str | None = None,
    *,
    missing_ok: bool = False,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load `config.toml`; with `missing_ok` an absent file yields the defaults."""
    path = resolve_config_path(config_path, environ=environ)
    if not path.exists():
        if missing_ok:
            return parse_app_config({}, base_dir=path.parent, source_file="")
        raise AppConfigurationError(f"Config file not found: {path}")
    if not path.is_file():
        raise AppConfigurationError(f"Config path is not a file: {path}")

    try:
        with open(path, "rb") as fh:
            raw = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as error:
        raise AppConfigurationError(f"Failed to parse config TOML: {error}") from error

    if not isinstance(raw, Mapping):
        raise AppConfigurationError("Root config TOML object must be a table.")

    return parse_app_config(raw, base_dir=path.parent, source_file=str(path))
