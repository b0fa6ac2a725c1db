class FocusModeError(Exception):
    """Base exception for do-not-disturb integrations."""


class FocusModeConfigurationError(FocusModeError):
    """Raised when focus-mode configuration is invalid."""


class FocusModePermissionError(FocusModeError):
    """Raised when the OS refuses the automation needed to toggle focus mode."""


class FocusModeCommandError(FocusModeError):
    """Raised when the external focus-mode command fails or times out."""
