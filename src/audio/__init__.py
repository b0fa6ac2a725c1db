"""Ambient sound playback and completion chime."""

from .config import DEFAULT_VOLUME, MAX_VOLUME, MIN_VOLUME, AudioConfig, clamp_volume
from .errors import AudioConfigurationError, AudioError
from .player import AudioClip, SoundDeviceAudioPlayer, load_wav
from .service import AudioPlayerLike, AudioService, build_audio_service
from .sounds import AUDIO_FILE_EXTENSION, CHIME_ASSET, AmbientSound

__all__ = [
    "AUDIO_FILE_EXTENSION",
    "AmbientSound",
    "AudioClip",
    "AudioConfig",
    "AudioConfigurationError",
    "AudioError",
    "AudioPlayerLike",
    "AudioService",
    "CHIME_ASSET",
    "DEFAULT_VOLUME",
    "MAX_VOLUME",
    "MIN_VOLUME",
    "SoundDeviceAudioPlayer",
    "build_audio_service",
    "clamp_volume",
    "load_wav",
]
