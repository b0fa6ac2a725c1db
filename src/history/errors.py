class HistoryError(Exception):
    """Base exception for session history storage."""


class HistoryConfigurationError(HistoryError):
    """Raised when history configuration is invalid."""


class HistoryStoreError(HistoryError):
    """Raised when reading from or writing to the history store fails."""
