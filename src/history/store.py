"""Append-only session history stores (in-memory and SQLite)."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Protocol

from .errors import HistoryStoreError
from .records import DateRange, SessionRecord


class SessionStoreLike(Protocol):
    """History store collaborator; query results are ordered newest first."""
    def append(self, record: SessionRecord) -> None:
        ...

    def query_by_date_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[SessionRecord]:
        ...

    def delete(self, record_id: str) -> None:
        ...

    def delete_all(self) -> None:
        ...


class InMemorySessionStore:
    """Process-local store used by tests and when persistence is disabled."""

    def __init__(self):
        self._records: list[SessionRecord] = []
        self._lock = threading.Lock()

    def append(self, record: SessionRecord) -> None:
        with self._lock:
            self._records.append(record)

    def query_by_date_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[SessionRecord]:
        window = DateRange(start=start, end=end)
        with self._lock:
            matching = [
                record for record in self._records if window.contains(record.start_date)
            ]
        return sorted(matching, key=lambda record: record.start_date, reverse=True)

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._records = [record for record in self._records if record.id != record_id]

    def delete_all(self) -> None:
        with self._lock:
            self._records.clear()


class SQLiteSessionStore:
    """SQLite-backed store; start dates are kept as UTC epoch seconds."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_database()
        except (OSError, sqlite3.Error) as error:
            raise HistoryStoreError(
                f"Failed to open session history at {self.db_path}: {error}"
            ) from error

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """One transaction on a short-lived connection, closed on exit."""
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_database(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS flow_sessions (
                    id TEXT PRIMARY KEY,
                    start_ts REAL NOT NULL,
                    planned_duration REAL NOT NULL,
                    actual_duration REAL NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    sound_used TEXT
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_flow_sessions_start
                ON flow_sessions(start_ts)
                """
            )

    def append(self, record: SessionRecord) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO flow_sessions (
                        id, start_ts, planned_duration, actual_duration,
                        completed, sound_used
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.start_date.timestamp(),
                        float(record.planned_duration),
                        float(record.actual_duration),
                        1 if record.completed_naturally else 0,
                        record.sound_used,
                    ),
                )
        except sqlite3.Error as error:
            raise HistoryStoreError(f"Failed to save session {record.id}: {error}") from error

    def query_by_date_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[SessionRecord]:
        clauses: list[str] = []
        params: list[float] = []
        if start is not None:
            clauses.append("start_ts >= ?")
            params.append(_epoch(start))
        if end is not None:
            clauses.append("start_ts < ?")
            params.append(_epoch(end))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        try:
            with self._connect() as conn:
                conn.row_factory = sqlite3.Row
                cursor = conn.execute(
                    f"""
                    SELECT * FROM flow_sessions
                    {where}
                    ORDER BY start_ts DESC
                    """,
                    params,
                )
                return [_row_to_record(row) for row in cursor.fetchall()]
        except sqlite3.Error as error:
            raise HistoryStoreError(f"Failed to fetch sessions: {error}") from error

    def delete(self, record_id: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM flow_sessions WHERE id = ?", (record_id,))
        except sqlite3.Error as error:
            raise HistoryStoreError(f"Failed to delete session {record_id}: {error}") from error

    def delete_all(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM flow_sessions")
        except sqlite3.Error as error:
            raise HistoryStoreError(f"Failed to delete all sessions: {error}") from error


def _epoch(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.astimezone()
    return value.timestamp()


def _row_to_record(row: sqlite3.Row) -> SessionRecord:
    return SessionRecord(
        id=row["id"],
        start_date=datetime.fromtimestamp(row["start_ts"]).astimezone(),
        planned_duration=float(row["planned_duration"]),
        actual_duration=float(row["actual_duration"]),
        completed_naturally=bool(row["completed"]),
        sound_used=row["sound_used"],
    )


def build_session_store(config, *, logger) -> SessionStoreLike:
    """Create the configured store; raises `HistoryStoreError` if it cannot open."""
    if config.backend == "memory":
        logger.info("Session history kept in memory only")
        return InMemorySessionStore()
    logger.info("Session history stored at %s", config.db_path)
    return SQLiteSessionStore(config.db_path)
