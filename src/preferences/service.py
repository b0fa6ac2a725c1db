"""Last-used duration, ambient sound, and volume, remembered across restarts."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from .errors import PreferencesStoreError
from .store import PreferencesStoreLike

KEY_DURATION = "last_duration"
KEY_SOUND = "last_sound"
KEY_VOLUME = "last_volume"


@dataclass(frozen=True)
class UserPreferences:
    last_duration: float = 3600.0
    last_sound: str = ""
    last_volume: float = 0.5

    def to_dict(self) -> dict[str, Any]:
        return {
            KEY_DURATION: self.last_duration,
            KEY_SOUND: self.last_sound,
            KEY_VOLUME: self.last_volume,
        }


def _positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def _clamp_volume(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


def parse_preferences(
    values: Mapping[str, Any],
    defaults: UserPreferences,
) -> UserPreferences:
    """Read stored values, keeping the default for any missing or malformed entry."""
    duration = _positive_number(values.get(KEY_DURATION))

    sound = values.get(KEY_SOUND, defaults.last_sound)
    if sound is None:
        sound = ""
    if not isinstance(sound, str):
        sound = defaults.last_sound

    volume = values.get(KEY_VOLUME)
    if isinstance(volume, bool) or not isinstance(volume, (int, float)) or not math.isfinite(volume):
        volume = defaults.last_volume

    return UserPreferences(
        last_duration=duration if duration is not None else defaults.last_duration,
        last_sound=sound.strip().lower(),
        last_volume=_clamp_volume(volume),
    )


class PreferencesManager:
    """Keeps the current preferences in memory and writes every change through.

    Store failures are logged and reported as `False`; the in-memory values
    still change so the running process behaves as the user asked.
    """

    def __init__(
        self,
        store: PreferencesStoreLike,
        *,
        defaults: UserPreferences = UserPreferences(),
        logger: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._defaults = defaults
        self._logger = logger or logging.getLogger("preferences")
        self._lock = threading.Lock()
        self._current = defaults

    @property
    def current(self) -> UserPreferences:
        with self._lock:
            return self._current

    @property
    def defaults(self) -> UserPreferences:
        return self._defaults

    def load(self) -> UserPreferences:
        try:
            values = self._store.load()
        except PreferencesStoreError as error:
            self._logger.warning("Using default preferences: %s", error)
            values = None

        loaded = (
            parse_preferences(values, self._defaults)
            if values is not None
            else self._defaults
        )
        with self._lock:
            self._current = loaded
        self._logger.info(
            "Preferences loaded: duration=%ss sound=%s volume=%.2f",
            int(loaded.last_duration),
            loaded.last_sound or "none",
            loaded.last_volume,
        )
        return loaded

    def set_last_duration(self, seconds: float) -> bool:
        duration = _positive_number(seconds)
        if duration is None:
            return False
        return self._update(last_duration=duration)

    def set_last_sound(self, sound_id: Optional[str]) -> bool:
        return self._update(last_sound=(sound_id or "").strip().lower())

    def set_last_volume(self, volume: float) -> bool:
        return self._update(last_volume=_clamp_volume(volume))

    def reset_to_defaults(self) -> bool:
        with self._lock:
            self._current = self._defaults
        try:
            self._store.clear()
        except PreferencesStoreError as error:
            self._logger.warning("Failed to reset preferences: %s", error)
            return False
        self._logger.info("Preferences reset to defaults")
        return True

    def _update(self, **changes: Any) -> bool:
        with self._lock:
            self._current = replace(self._current, **changes)
            values = self._current.to_dict()
        try:
            self._store.save(values)
        except PreferencesStoreError as error:
            self._logger.warning("Failed to save preferences: %s", error)
            return False
        return True
