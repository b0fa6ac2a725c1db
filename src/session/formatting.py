"""Clock-face formatting helpers for remaining and selected durations."""

from __future__ import annotations

import re

_CLOCK_PATTERN = re.compile(r"^(\d{2,}):(\d{2}):(\d{2})$")


def _whole_seconds(seconds: float) -> int:
    return max(0, int(seconds))


def split_time(seconds: float) -> tuple[int, int, int]:
    """Split seconds into `(hours, minutes, seconds)`, clamping negatives to zero."""
    total = _whole_seconds(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    return hours, minutes, total % 60


def format_time(seconds: float) -> str:
    """Format a duration as `HH:MM:SS`; the hours field grows past 99."""
    hours, minutes, secs = split_time(seconds)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_time(text: str) -> int:
    """Parse an `HH:MM:SS` string produced by `format_time` back into seconds."""
    match = _CLOCK_PATTERN.match(text.strip())
    if match is None:
        raise ValueError(f"Not an HH:MM:SS value: {text!r}")
    hours, minutes, secs = (int(group) for group in match.groups())
    if minutes > 59 or secs > 59:
        raise ValueError(f"Minutes and seconds must be below 60: {text!r}")
    return hours * 3600 + minutes * 60 + secs


def extract_digits(seconds: float) -> tuple[int, int, int, int, int, int]:
    """Return the six flip-clock digits (hour/minute/second tens and ones)."""
    hours, minutes, secs = split_time(seconds)
    return (
        hours // 10,
        hours % 10,
        minutes // 10,
        minutes % 10,
        secs // 10,
        secs % 10,
    )


def format_duration_words(seconds: float) -> str:
    """Describe a duration as `"2 hour"`, `"1 hour 30 minute"` or `"45 minute"`."""
    hours, minutes, _ = split_time(seconds)
    if hours > 0:
        if minutes > 0:
            return f"{hours} hour {minutes} minute"
        return f"{hours} hour"
    return f"{minutes} minute"
