"""Session history records, stores, and statistics."""

from .config import HistoryConfig
from .errors import HistoryConfigurationError, HistoryError, HistoryStoreError
from .recorder import HistoryRecorder, aggregate
from .records import (
    ALL_TIME,
    DateRange,
    SessionRecord,
    SessionStatistics,
    TimePeriod,
)
from .store import (
    InMemorySessionStore,
    SessionStoreLike,
    SQLiteSessionStore,
    build_session_store,
)

__all__ = [
    "ALL_TIME",
    "DateRange",
    "HistoryConfig",
    "HistoryConfigurationError",
    "HistoryError",
    "HistoryRecorder",
    "HistoryStoreError",
    "InMemorySessionStore",
    "SQLiteSessionStore",
    "SessionRecord",
    "SessionStatistics",
    "SessionStoreLike",
    "TimePeriod",
    "aggregate",
    "build_session_store",
]
