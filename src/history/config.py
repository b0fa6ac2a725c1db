"""Configuration model for the session history store."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

from .errors import HistoryConfigurationError

BACKEND_SQLITE = "sqlite"
BACKEND_MEMORY = "memory"
_BACKENDS = {BACKEND_SQLITE, BACKEND_MEMORY}
_DB_FILE_NAME = "flow_history.db"


def default_db_path() -> Path:
    return Path(user_data_dir("flow-timer", "flow-timer")) / _DB_FILE_NAME


@dataclass(frozen=True)
class HistoryConfig:
    """Validated history settings derived from `[history]`."""
    backend: str = BACKEND_SQLITE
    db_path: str = ""

    def __post_init__(self) -> None:
        if self.backend not in _BACKENDS:
            allowed = ", ".join(sorted(_BACKENDS))
            raise HistoryConfigurationError(f"history.backend must be one of: {allowed}")
        if self.backend == BACKEND_SQLITE and not self.db_path:
            raise HistoryConfigurationError("history.db_path cannot be empty")

    @classmethod
    def from_settings(cls, settings) -> "HistoryConfig":
        backend = (settings.backend or BACKEND_SQLITE).strip().lower()
        db_path = (settings.db_path or "").strip()
        if backend == BACKEND_SQLITE and not db_path:
            db_path = str(default_db_path())
        return cls(backend=backend, db_path=db_path)
