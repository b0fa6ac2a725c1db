"""Immutable session history records, reporting periods, and statistics."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.astimezone()


def _new_record_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class SessionRecord:
    """One finished or cancelled focus session, created once and never mutated."""
    start_date: datetime
    planned_duration: float
    actual_duration: float
    completed_naturally: bool
    sound_used: Optional[str] = None
    id: str = field(default_factory=_new_record_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", _as_aware(self.start_date))

    @property
    def end_date(self) -> datetime:
        return self.start_date + timedelta(seconds=self.actual_duration)

    @property
    def completion_percentage(self) -> float:
        if self.planned_duration <= 0:
            return 0.0
        return min(self.actual_duration / self.planned_duration, 1.0)

    @property
    def formatted_duration(self) -> str:
        total = max(0, int(self.actual_duration))
        hours = total // 3600
        minutes = (total % 3600) // 60
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"


@dataclass(frozen=True)
class DateRange:
    """Half-open `[start, end)` interval; a `None` bound is unbounded."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        moment = _as_aware(moment)
        if self.start is not None and moment < _as_aware(self.start):
            return False
        if self.end is not None and moment >= _as_aware(self.end):
            return False
        return True


ALL_TIME = DateRange()


class TimePeriod(Enum):
    TODAY = "today"
    THIS_WEEK = "this_week"
    ALL_TIME = "all_time"

    @property
    def display_name(self) -> str:
        return {
            TimePeriod.TODAY: "Today",
            TimePeriod.THIS_WEEK: "This Week",
            TimePeriod.ALL_TIME: "All Time",
        }[self]

    def date_range(self, now: Optional[datetime] = None) -> DateRange:
        """Resolve the period against `now`; weeks start on Monday."""
        current = _as_aware(now) if now is not None else datetime.now().astimezone()
        start_of_day = current.replace(hour=0, minute=0, second=0, microsecond=0)
        if self is TimePeriod.TODAY:
            return DateRange(start=start_of_day, end=None)
        if self is TimePeriod.THIS_WEEK:
            return DateRange(
                start=start_of_day - timedelta(days=current.weekday()),
                end=None,
            )
        return ALL_TIME


@dataclass(frozen=True)
class SessionStatistics:
    """Aggregate of a set of session records."""
    count: int = 0
    completed_count: int = 0
    total_actual_duration: float = 0.0
