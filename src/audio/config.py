"""Configuration model for ambient audio assets and output selection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .errors import AudioConfigurationError

MIN_VOLUME = 0.0
MAX_VOLUME = 1.0
DEFAULT_VOLUME = 0.5


def clamp_volume(value: float) -> float:
    volume = float(value)
    if math.isnan(volume):
        return MIN_VOLUME
    return min(max(volume, MIN_VOLUME), MAX_VOLUME)


@dataclass(frozen=True)
class AudioConfig:
    """Resolved audio settings derived from `[audio]`."""
    enabled: bool = True
    sounds_dir: str = ""
    volume: float = DEFAULT_VOLUME
    output_device_index: Optional[int] = None

    def __post_init__(self) -> None:
        if self.enabled and not self.sounds_dir:
            raise AudioConfigurationError("audio.sounds_dir cannot be empty")

    @classmethod
    def from_settings(cls, settings) -> "AudioConfig":
        return cls(
            enabled=bool(settings.enabled),
            sounds_dir=(settings.sounds_dir or "").strip(),
            volume=clamp_volume(settings.volume),
            output_device_index=settings.output_device,
        )
