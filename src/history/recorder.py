"""History recorder that forwards session records and computes statistics."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional, Union

from .records import ALL_TIME, DateRange, SessionRecord, SessionStatistics, TimePeriod
from .store import SessionStoreLike

PeriodLike = Union[TimePeriod, DateRange, None]


def aggregate(period: PeriodLike, records: Iterable[SessionRecord]) -> SessionStatistics:
    """Count and sum the records whose start date falls in `period`."""
    window = _resolve_period(period, now=None)
    count = 0
    completed_count = 0
    total_actual_duration = 0.0
    for record in records:
        if not window.contains(record.start_date):
            continue
        count += 1
        if record.completed_naturally:
            completed_count += 1
        total_actual_duration += record.actual_duration
    return SessionStatistics(
        count=count,
        completed_count=completed_count,
        total_actual_duration=total_actual_duration,
    )


class HistoryRecorder:
    """Hands finished sessions to the store without mutating or de-duplicating them.

    Store failures are raised as `HistoryStoreError`; the coordinator decides
    how to surface them.
    """

    def __init__(
        self,
        store: SessionStoreLike,
        logger: Optional[logging.Logger] = None,
        *,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._logger = logger or logging.getLogger("history")
        self._now = now_fn or (lambda: datetime.now().astimezone())

    def record(self, record: SessionRecord) -> None:
        self._store.append(record)
        self._logger.info(
            "Session recorded: id=%s completed=%s actual=%ss planned=%ss",
            record.id,
            record.completed_naturally,
            int(record.actual_duration),
            int(record.planned_duration),
        )

    def sessions(self, period: PeriodLike = None) -> list[SessionRecord]:
        window = _resolve_period(period, now=self._now())
        return self._store.query_by_date_range(window.start, window.end)

    def statistics(self, period: PeriodLike = None) -> SessionStatistics:
        window = _resolve_period(period, now=self._now())
        return aggregate(window, self._store.query_by_date_range(window.start, window.end))

    def delete(self, record_id: str) -> None:
        self._store.delete(record_id)
        self._logger.info("Session deleted: id=%s", record_id)

    def delete_all(self) -> None:
        self._store.delete_all()
        self._logger.info("All sessions deleted")


def _resolve_period(period: PeriodLike, *, now: Optional[datetime]) -> DateRange:
    if period is None:
        return ALL_TIME
    if isinstance(period, TimePeriod):
        return period.date_range(now)
    return period
