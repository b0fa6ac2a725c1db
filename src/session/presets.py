"""Session duration presets offered to presentation consumers."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DurationPreset(Enum):
    THIRTY_MINUTES = 1800
    ONE_HOUR = 3600
    TWO_HOURS = 7200
    THREE_HOURS = 10800
    FOUR_HOURS = 14400

    @property
    def seconds(self) -> float:
        return float(self.value)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def short_name(self) -> str:
        return _SHORT_NAMES[self]

    @classmethod
    def from_short_name(cls, name: str) -> Optional["DurationPreset"]:
        normalized = name.strip().lower()
        for preset, short_name in _SHORT_NAMES.items():
            if short_name == normalized:
                return preset
        return None


_DISPLAY_NAMES = {
    DurationPreset.THIRTY_MINUTES: "30 min",
    DurationPreset.ONE_HOUR: "1 hour",
    DurationPreset.TWO_HOURS: "2 hours",
    DurationPreset.THREE_HOURS: "3 hours",
    DurationPreset.FOUR_HOURS: "4 hours",
}

_SHORT_NAMES = {
    DurationPreset.THIRTY_MINUTES: "30m",
    DurationPreset.ONE_HOUR: "1h",
    DurationPreset.TWO_HOURS: "2h",
    DurationPreset.THREE_HOURS: "3h",
    DurationPreset.FOUR_HOURS: "4h",
}

DURATION_PRESETS: tuple[DurationPreset, ...] = tuple(DurationPreset)
