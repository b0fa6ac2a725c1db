"""Ambient sound catalogue and asset naming."""

from __future__ import annotations

from enum import Enum
from typing import Optional

CHIME_ASSET = "chime"
AUDIO_FILE_EXTENSION = ".wav"


class AmbientSound(Enum):
    BROOK = "brook"
    OCEAN = "ocean"
    WHITE_NOISE = "white_noise"
    RAIN = "rain"
    FOREST = "forest"
    COFFEE_SHOP = "coffee_shop"
    FIREPLACE = "fireplace"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def file_name(self) -> str:
        return f"{self.value}{AUDIO_FILE_EXTENSION}"

    @classmethod
    def from_id(cls, sound_id: Optional[str]) -> Optional["AmbientSound"]:
        if not sound_id:
            return None
        try:
            return cls(sound_id.strip().lower())
        except ValueError:
            return None


_DISPLAY_NAMES = {
    AmbientSound.BROOK: "Brook",
    AmbientSound.OCEAN: "Ocean Waves",
    AmbientSound.WHITE_NOISE: "White Noise",
    AmbientSound.RAIN: "Rain",
    AmbientSound.FOREST: "Forest",
    AmbientSound.COFFEE_SHOP: "Coffee Shop",
    AmbientSound.FIREPLACE: "Fireplace",
}
