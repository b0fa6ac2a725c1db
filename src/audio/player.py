"""Sounddevice-backed playback for looping ambient clips and one-shot chimes."""

from __future__ import annotations

import logging
import threading
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import numpy as np

from .errors import AudioError


@dataclass(frozen=True)
class AudioClip:
    """Decoded PCM clip as float32 frames shaped `(frames, channels)`."""
    samples: np.ndarray
    sample_rate_hz: int

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate_hz


def load_wav(path: Path) -> AudioClip:
    """Decode a 16-bit PCM WAV file."""
    try:
        with wave.open(str(path), "rb") as handle:
            sample_width = handle.getsampwidth()
            channels = handle.getnchannels()
            sample_rate_hz = handle.getframerate()
            frames = handle.readframes(handle.getnframes())
    except (OSError, EOFError, wave.Error) as error:
        raise AudioError(f"Failed to read audio file {path}: {error}") from error

    if sample_width != 2:
        raise AudioError(
            f"Unsupported sample width in {path.name}: {sample_width * 8} bit "
            "(expected 16-bit PCM)"
        )

    pcm_int16 = np.frombuffer(frames, dtype=np.int16)
    if pcm_int16.size == 0:
        raise AudioError(f"Audio file is empty: {path}")

    samples = (pcm_int16.astype(np.float32) / 32768.0).reshape(-1, channels)
    return AudioClip(samples=samples, sample_rate_hz=sample_rate_hz)


def _import_sounddevice():
    try:
        import sounddevice as sd
    except (ImportError, OSError) as error:  # pragma: no cover - depends on host audio stack
        raise AudioError(
            f"sounddevice is unavailable ({error}). Install PortAudio and sounddevice."
        ) from error
    return sd


class SoundDeviceAudioPlayer:
    """Plays clips through a selected sounddevice output without blocking the caller."""

    def __init__(
        self,
        output_device_index: Optional[int] = None,
        blocksize: int = 2048,
        logger: Optional[logging.Logger] = None,
    ):
        self._output_device_index = output_device_index
        self._blocksize = blocksize
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._loop_stream: Any = None
        self._oneshot_stream: Any = None

    def start_loop(self, clip: AudioClip, *, gain_fn: Callable[[], float]) -> None:
        """Play `clip` repeatedly; `gain_fn` is read per block so volume changes apply live."""
        sd = _import_sounddevice()
        self.stop_loop()
        pos = 0

        def callback(outdata, frames, time_info, status):
            nonlocal pos
            if status:
                self._logger.warning("Sounddevice status: %s", status)

            gain = gain_fn()
            written = 0
            while written < frames:
                chunk = clip.samples[pos : pos + (frames - written)]
                outdata[written : written + len(chunk)] = chunk * gain
                written += len(chunk)
                pos = (pos + len(chunk)) % len(clip.samples)

        stream = self._open_stream(sd, clip, callback)
        with self._lock:
            self._loop_stream = stream

    def stop_loop(self) -> None:
        with self._lock:
            stream, self._loop_stream = self._loop_stream, None
        self._close_stream(stream)

    def play_once(self, clip: AudioClip, *, gain: float) -> None:
        sd = _import_sounddevice()
        with self._lock:
            previous, self._oneshot_stream = self._oneshot_stream, None
        self._close_stream(previous)

        pos = 0

        def callback(outdata, frames, time_info, status):
            nonlocal pos
            if status:
                self._logger.warning("Sounddevice status: %s", status)

            end = pos + frames
            chunk = clip.samples[pos:end]
            if len(chunk) < frames:
                outdata[: len(chunk)] = chunk * gain
                outdata[len(chunk) :] = 0
                raise sd.CallbackStop()

            outdata[:] = chunk * gain
            pos = end

        stream = self._open_stream(sd, clip, callback)
        with self._lock:
            self._oneshot_stream = stream

    def close(self) -> None:
        self.stop_loop()
        with self._lock:
            stream, self._oneshot_stream = self._oneshot_stream, None
        self._close_stream(stream)

    def _open_stream(self, sd, clip: AudioClip, callback):
        try:
            stream = sd.OutputStream(
                channels=clip.channels,
                samplerate=clip.sample_rate_hz,
                blocksize=self._blocksize,
                callback=callback,
                device=self._output_device_index,
                dtype="float32",
            )
            stream.start()
        except Exception as error:
            raise AudioError(f"Audio playback failed: {error}") from error
        return stream

    def _close_stream(self, stream) -> None:
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as error:
            self._logger.warning("Failed to close audio stream: %s", error)
