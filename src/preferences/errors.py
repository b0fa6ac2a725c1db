class PreferencesError(Exception):
    """Base exception for persisted user preferences."""


class PreferencesConfigurationError(PreferencesError):
    """Raised when preferences configuration is invalid."""


class PreferencesStoreError(PreferencesError):
    """Raised when the preferences file cannot be read or written."""
