"""
Destinations for synthesized audio: the speaker, a WAV file, and memory.
"""

import wave
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Union

from utils import get_logger
from .protocol import AudioConfig, TTS_AUDIO_CONFIG


class AudioSink(Protocol):
    """Anything chunks can be written to"""

    def write(self, data: bytes) -> int: ...

    def end(self) -> None: ...


@dataclass(frozen=True)
class AudioInfo:
    """Summary of the audio received in a session"""
    chunks_count: int
    total_bytes: int
    duration_seconds: float
    sample_rate: int
    channels: int
    bits_per_sample: int


class AudioStorage:
    """Keeps every received chunk, in arrival order"""

    def __init__(self, audio_config: AudioConfig = TTS_AUDIO_CONFIG):
        self.audio_config = audio_config
        self._chunks: List[bytes] = []

    def write(self, data: bytes) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def end(self) -> None:
        pass

    def data(self) -> bytes:
        """All stored audio concatenated"""
        return b"".join(self._chunks)

    def info(self) -> AudioInfo:
        total_bytes = sum(len(chunk) for chunk in self._chunks)
        return AudioInfo(
            chunks_count=len(self._chunks),
            total_bytes=total_bytes,
            duration_seconds=total_bytes / self.audio_config.bytes_per_second,
            sample_rate=self.audio_config.sample_rate,
            channels=self.audio_config.channels,
            bits_per_sample=self.audio_config.bits_per_sample
        )

    def clear(self) -> None:
        self._chunks = []


class WavFileSink:
    """Writes chunks incrementally into a WAV container"""

    def __init__(self, path: Union[str, Path], audio_config: AudioConfig = TTS_AUDIO_CONFIG, logger=None):
        self.path = Path(path)
        self.audio_config = audio_config
        self.logger = logger or get_logger(f"{__name__}.WavFileSink")
        self._wav = None
        self._ended = False
        self.bytes_written = 0

    def open(self) -> 'WavFileSink':
        if self._ended:
            raise ValueError(f"{self.path} was already finalized")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        wav = wave.open(str(self.path), 'wb')
        wav.setnchannels(self.audio_config.channels)
        wav.setsampwidth(self.audio_config.bits_per_sample // 8)
        wav.setframerate(self.audio_config.sample_rate)
        self._wav = wav
        self.logger.info(f"💾 WAV writer initialized for: {self.path}")
        return self

    @property
    def is_open(self) -> bool:
        return self._wav is not None

    def write(self, data: bytes) -> int:
        if self._ended:
            self.logger.warning(f"Dropping {len(data)} bytes written after {self.path} was finalized")
            return 0
        if self._wav is None:
            self.open()
        self._wav.writeframes(data)
        self.bytes_written += len(data)
        return len(data)

    def end(self) -> None:
        """Finalize the file; later writes are dropped"""
        self._ended = True
        if self._wav is None:
            return
        try:
            self._wav.close()
        finally:
            self._wav = None
        self.logger.info(f"💾 Audio saved to: {self.path} ({self.bytes_written:,} bytes)")


class PyAudioSink:
    """Plays 16-bit PCM through the default (or a chosen) output device"""

    def __init__(self, audio_config: AudioConfig = TTS_AUDIO_CONFIG,
                 frames_per_buffer: int = 1024,
                 device_index: Optional[int] = None,
                 logger=None):
        self.audio_config = audio_config
        self.frames_per_buffer = frames_per_buffer
        self.device_index = device_index
        self.logger = logger or get_logger(f"{__name__}.PyAudioSink")
        self._pyaudio = None
        self._stream = None

    def open(self) -> 'PyAudioSink':
        # Optional dependency, only needed when playback is enabled
        import pyaudio

        self._pyaudio = pyaudio.PyAudio()
        try:
            self._stream = self._pyaudio.open(
                format=self._pyaudio.get_format_from_width(self.audio_config.bits_per_sample // 8),
                channels=self.audio_config.channels,
                rate=self.audio_config.sample_rate,
                output=True,
                frames_per_buffer=self.frames_per_buffer,
                output_device_index=self.device_index
            )
        except Exception:
            self._pyaudio.terminate()
            self._pyaudio = None
            raise
        self.logger.info(f"🔊 Real-time audio streaming initialized: {self.audio_config.sample_rate}Hz, "
                         f"{self.audio_config.channels} channel(s), {self.audio_config.bits_per_sample}-bit")
        return self

    def write(self, data: bytes) -> int:
        if self._stream is None:
            self.logger.warning("Speaker stream unavailable - cannot play audio")
            return 0
        self._stream.write(data)
        return len(data)

    def end(self) -> None:
        if self._stream:
            try:
                self._stream.stop_stream()
                self._stream.close()
            except Exception as e:
                self.logger.warning(f"Error closing speaker stream: {e}")
            finally:
                self._stream = None

        if self._pyaudio:
            try:
                self._pyaudio.terminate()
            except Exception as e:
                self.logger.warning(f"Error terminating PyAudio: {e}")
            finally:
                self._pyaudio = None

        self.logger.debug("🧹 Audio output closed")
