class AudioError(Exception):
    """Raised when loading or playing a sound fails."""


class AudioConfigurationError(AudioError):
    """Raised when audio configuration is invalid."""
