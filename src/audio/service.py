"""Ambient sound and completion chime control used by the session coordinator."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Protocol

from .config import DEFAULT_VOLUME, AudioConfig, clamp_volume
from .errors import AudioError
from .player import AudioClip, SoundDeviceAudioPlayer, load_wav
from .sounds import AUDIO_FILE_EXTENSION, CHIME_ASSET, AmbientSound


class AudioPlayerLike(Protocol):
    def start_loop(self, clip: AudioClip, *, gain_fn: Callable[[], float]) -> None:
        ...

    def stop_loop(self) -> None:
        ...

    def play_once(self, clip: AudioClip, *, gain: float) -> None:
        ...

    def close(self) -> None:
        ...


ClipLoader = Callable[[Path], AudioClip]


class AudioService:
    """Plays one looping ambient sound at a time plus the completion chime.

    Playback failures never propagate: a missing asset or a broken output
    device is logged and the session carries on silently. Without a player
    the service still tracks selection, volume and mute state.
    """

    def __init__(
        self,
        player: Optional[AudioPlayerLike],
        *,
        sounds_dir: Path | str = "",
        volume: float = DEFAULT_VOLUME,
        logger: Optional[logging.Logger] = None,
        clip_loader: Optional[ClipLoader] = None,
    ):
        self._player = player
        self._sounds_dir = Path(sounds_dir) if sounds_dir else None
        self._logger = logger or logging.getLogger("audio")
        self._load_clip = clip_loader or load_wav
        self._lock = threading.Lock()
        self._volume = clamp_volume(volume)
        self._muted = False
        self._current_sound: Optional[AmbientSound] = None
        self._playing = False
        self._clip_cache: dict[str, AudioClip] = {}

    @property
    def current_sound(self) -> Optional[AmbientSound]:
        with self._lock:
            return self._current_sound

    @property
    def volume(self) -> float:
        with self._lock:
            return self._volume

    @property
    def is_muted(self) -> bool:
        with self._lock:
            return self._muted

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._playing

    def play_ambient(self, sound: AmbientSound) -> bool:
        """Start looping `sound`, replacing whatever ambient sound was playing."""
        self.stop_ambient()
        with self._lock:
            self._current_sound = sound

        clip = self._clip(sound.value)
        if clip is None or self._player is None:
            return False

        try:
            self._player.start_loop(clip, gain_fn=self._effective_gain)
        except AudioError as error:
            self._logger.warning("Ambient sound '%s' unavailable: %s", sound.value, error)
            return False

        with self._lock:
            self._playing = True
        self._logger.info("Ambient sound playing: %s", sound.display_name)
        return True

    def stop_ambient(self) -> None:
        with self._lock:
            self._current_sound = None
        self._halt_loop("Ambient sound stopped")

    def pause_ambient(self) -> None:
        """Silence the loop but keep the current sound for `resume_ambient()`."""
        self._halt_loop("Ambient sound paused")

    def resume_ambient(self) -> bool:
        with self._lock:
            sound = self._current_sound
            playing = self._playing
        if sound is None or playing:
            return False
        return self.play_ambient(sound)

    def _halt_loop(self, message: str) -> None:
        with self._lock:
            was_playing = self._playing
            self._playing = False
        if not was_playing or self._player is None:
            return
        self._player.stop_loop()
        self._logger.info(message)

    def play_completion_chime(self) -> bool:
        clip = self._clip(CHIME_ASSET)
        if clip is None or self._player is None:
            return False
        try:
            self._player.play_once(clip, gain=self._effective_gain())
        except AudioError as error:
            self._logger.warning("Completion chime unavailable: %s", error)
            return False
        return True

    def set_volume(self, volume: float) -> float:
        with self._lock:
            self._volume = clamp_volume(volume)
            return self._volume

    def set_muted(self, muted: bool) -> None:
        with self._lock:
            self._muted = bool(muted)

    def toggle_mute(self) -> bool:
        with self._lock:
            self._muted = not self._muted
            return self._muted

    def cleanup(self) -> None:
        self.stop_ambient()
        if self._player is not None:
            self._player.close()
        with self._lock:
            self._clip_cache.clear()

    def _effective_gain(self) -> float:
        with self._lock:
            return 0.0 if self._muted else self._volume

    def _clip(self, asset: str) -> Optional[AudioClip]:
        with self._lock:
            cached = self._clip_cache.get(asset)
        if cached is not None:
            return cached
        if self._sounds_dir is None:
            return None

        path = self._sounds_dir / f"{asset}{AUDIO_FILE_EXTENSION}"
        if not path.is_file():
            self._logger.warning("Audio asset not found: %s", path)
            return None
        try:
            clip = self._load_clip(path)
        except AudioError as error:
            self._logger.warning("Failed to load audio asset %s: %s", path, error)
            return None

        with self._lock:
            self._clip_cache[asset] = clip
        return clip


def build_audio_service(config: AudioConfig, *, logger: logging.Logger) -> AudioService:
    if not config.enabled:
        logger.info("Audio playback disabled (audio.enabled=false)")
        return AudioService(None, volume=config.volume, logger=logger)

    player = SoundDeviceAudioPlayer(
        output_device_index=config.output_device_index,
        logger=logger.getChild("player"),
    )
    logger.info(
        "Audio ready: sounds_dir=%s volume=%.2f device=%s",
        config.sounds_dir,
        config.volume,
        config.output_device_index,
    )
    return AudioService(
        player,
        sounds_dir=config.sounds_dir,
        volume=config.volume,
        logger=logger,
    )
