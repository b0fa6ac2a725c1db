"""Persisted user preferences: last duration, ambient sound, and volume."""

from .config import PreferencesConfig
from .errors import PreferencesConfigurationError, PreferencesError, PreferencesStoreError
from .service import PreferencesManager, UserPreferences, parse_preferences
from .store import (
    InMemoryPreferencesStore,
    JsonPreferencesStore,
    PreferencesStoreLike,
    build_preferences_store,
)

__all__ = [
    "InMemoryPreferencesStore",
    "JsonPreferencesStore",
    "PreferencesConfig",
    "PreferencesConfigurationError",
    "PreferencesError",
    "PreferencesManager",
    "PreferencesStoreError",
    "PreferencesStoreLike",
    "UserPreferences",
    "build_preferences_store",
    "parse_preferences",
]
