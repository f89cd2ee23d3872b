"""
Text-to-speech streaming service.

Sends speak requests and receives 24kHz 16-bit mono PCM chunks, which are
played back, stored in memory, and optionally saved to a WAV file.
"""

import asyncio
from typing import Callable, Optional

from pydantic import BaseModel

from utils import get_logger
from utils.config import ServiceConfig, DEFAULT_TTS_ENDPOINT
from utils.metrics import OperationType, log_performance, start_timer, end_timer
from .connection import StreamingConnection, HANDSHAKE_TIMEOUT
from .dispatcher import AudioChunk
from .errors import StreamingError
from .playback import AudioPlaybackScheduler, MIN_AUDIO_BUFFER_SIZE
from .protocol import (
    AudioConfig, ControlKind, ControlMessage, SpeakRequest, SynthesisHandshake, TTS_AUDIO_CONFIG
)
from .session import Mode, Session
from .sinks import AudioInfo, AudioSink, AudioStorage, PyAudioSink, WavFileSink
from .transport import Transport, WebSocketTransport

DEFAULT_TEST_TEXT = "Hello, this is a test of the text-to-speech system."

SinkFactory = Callable[[AudioConfig], AudioSink]


def open_speaker(audio_config: AudioConfig) -> AudioSink:
    """Default sink factory: the system's output device"""
    return PyAudioSink(audio_config).open()


class SynthesisConfig(BaseModel):
    """Configuration for a speech synthesis session"""
    api_key: str
    endpoint: str = DEFAULT_TTS_ENDPOINT
    speaker_name: str = "tara"
    enable_playback: bool = True
    save_audio_path: Optional[str] = None
    text: Optional[str] = None               # Sent with the handshake and spoken once ready
    min_buffered_chunks: int = MIN_AUDIO_BUFFER_SIZE
    handshake_timeout: float = HANDSHAKE_TIMEOUT
    completion_timeout: float = 30.0

    @classmethod
    def from_env(cls, **overrides) -> 'SynthesisConfig':
        """Fill credential and endpoint from TALKSCRIBER_* variables"""
        service = ServiceConfig.from_env()
        values = {"api_key": service.api_key or "", "endpoint": service.tts_endpoint}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


class SpeechSynthesisService:
    """Real-time text-to-speech over one streaming session"""

    def __init__(self,
                 config: SynthesisConfig,
                 on_audio_chunk: Optional[Callable[[bytes], None]] = None,
                 on_audio_complete: Optional[Callable[[], None]] = None,
                 on_error: Optional[Callable[[StreamingError], None]] = None,
                 transport: Optional[Transport] = None,
                 sink_factory: SinkFactory = open_speaker,
                 logger=None):
        self.config = config
        self.on_audio_chunk = on_audio_chunk
        self.on_audio_complete = on_audio_complete
        self.on_error = on_error
        self.sink_factory = sink_factory
        self.logger = logger or get_logger(f"{__name__}.SpeechSynthesisService")

        self.session = Session(config.endpoint, config.api_key, Mode.SYNTHESIZE)
        self.storage = AudioStorage(TTS_AUDIO_CONFIG)
        self.scheduler = AudioPlaybackScheduler(
            storage=self.storage,
            min_buffered_chunks=config.min_buffered_chunks,
            audio_config=TTS_AUDIO_CONFIG,
            logger=self.logger
        )
        self.connection = StreamingConnection(
            self.session,
            transport or WebSocketTransport(logger=self.logger),
            handshake=SynthesisHandshake(
                uid=self.session.id,
                auth=config.api_key,
                speaker_name=config.speaker_name,
                text=config.text or ""
            ),
            listener=self,
            handshake_timeout=config.handshake_timeout,
            logger=self.logger
        )
        dispatcher = self.connection.dispatcher
        dispatcher.register_audio(self._handle_audio_chunk)
        dispatcher.register(ControlKind.AUDIO_COMPLETE, self._handle_audio_complete)
        dispatcher.register(ControlKind.STOP_CONFIRMED, self._handle_stop_confirmed)

        self.chunks_received = 0
        self.total_bytes = 0
        self.generation_complete = False
        self._finished = asyncio.Event()
        self._outputs_ready = False
        self._speak_started: Optional[float] = None
        self._awaiting_first_chunk = False

    @property
    def session_id(self) -> str:
        return self.session.id

    def init_audio(self) -> bool:
        """Open the output device and the WAV file, if configured.

        Returns False when playback was requested but no device could be
        opened; storage and file saving keep working in that case.
        """
        if self._outputs_ready:
            return self.scheduler.sink is not None or not self.config.enable_playback
        self._outputs_ready = True

        if self.config.save_audio_path:
            self.scheduler.file_sink = WavFileSink(self.config.save_audio_path, TTS_AUDIO_CONFIG,
                                                   logger=self.logger).open()

        if not self.config.enable_playback:
            self.logger.info("Audio playback disabled, skipping audio initialization")
            return True

        try:
            self.scheduler.sink = self.sink_factory(TTS_AUDIO_CONFIG)
        except Exception as e:
            self.logger.error(f"❌ Failed to initialize audio streaming: {e}")
            return False
        return True

    async def connect(self) -> None:
        if not self.init_audio():
            self.logger.warning("⚠️ Continuing without playback")
        await self.connection.connect()

    def speak(self, text: str, speaker: Optional[str] = None) -> bool:
        """Ask the server to synthesize `text`; only valid once connected"""
        request = SpeakRequest(text=text, speaker=speaker or self.config.speaker_name)
        self.connection.send_control(request)

        # Each request gets its own end-of-stream
        self.generation_complete = False
        self._finished.clear()
        self.scheduler.begin_stream()
        self._awaiting_first_chunk = True
        self._speak_started = start_timer()
        preview = text[:50] + ("..." if len(text) > 50 else "")
        self.logger.info(f"🗣️ Sending speak request for text: '{preview}'")
        return True

    async def wait_until_complete(self, timeout: Optional[float] = None) -> bool:
        """Wait for the end of the audio stream; False on timeout, failure or close"""
        try:
            await asyncio.wait_for(self._finished.wait(), timeout)
        except asyncio.TimeoutError:
            self.logger.warning("⏰ Timeout waiting for audio completion")
            return False
        return self.generation_complete

    async def wait_until_played(self) -> None:
        await self.scheduler.wait_until_played()

    def close(self) -> None:
        """Close the session and stop playback. Safe to call repeatedly."""
        self.connection.close()
        self.scheduler.close()
        self._finished.set()

    def stored_audio(self) -> bytes:
        """All audio received so far, concatenated"""
        return self.storage.data()

    def audio_info(self) -> AudioInfo:
        return self.storage.info()

    async def synthesize(self, text: Optional[str] = None) -> bool:
        """Connect, speak `text`, wait for the audio to finish and close.

        Returns True when the full audio stream was received.
        """
        self.chunks_received = 0
        self.total_bytes = 0
        self.storage.clear()

        try:
            await self.connect()
            if self.config.text:
                self.logger.info("Speak request already sent on authentication, waiting for audio chunks...")
            else:
                self.speak(text or DEFAULT_TEST_TEXT)

            completed = await self.wait_until_complete(self.config.completion_timeout)
            if completed:
                await self.wait_until_played()
            return completed
        except StreamingError as e:
            self.logger.error(f"❌ Error during synthesis: {e}")
            return False
        finally:
            self.close()

    async def __aenter__(self) -> 'SpeechSynthesisService':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Connection listener

    def connection_ready(self) -> None:
        if self.config.text:
            self.speak(self.config.text)

    def connection_failed(self, error: StreamingError) -> None:
        self._finished.set()
        if self.on_error:
            self.on_error(error)

    def connection_closed(self, code: int) -> None:
        self._finished.set()

    # Inbound handlers

    def _handle_audio_chunk(self, chunk: AudioChunk) -> None:
        if self._awaiting_first_chunk and self._speak_started is not None:
            self._awaiting_first_chunk = False
            log_performance(OperationType.TTS_FIRST_CHUNK.value, end_timer(self._speak_started))

        self.chunks_received += 1
        self.total_bytes += len(chunk)
        self.logger.debug(f"Received audio chunk #{self.chunks_received}: {len(chunk)} bytes "
                          f"(total: {self.total_bytes:,} bytes)")

        self.scheduler.feed(chunk)
        if self.on_audio_chunk:
            self.on_audio_chunk(chunk.data)

    def _handle_audio_complete(self, message: ControlMessage) -> None:
        self.logger.info(f"✅ Audio generation completed! Received {self.chunks_received} chunks, "
                         f"{self.total_bytes:,} total bytes")
        self.generation_complete = True
        if self._speak_started is not None:
            log_performance(OperationType.TTS_STREAMING.value, end_timer(self._speak_started),
                            {'chunks': self.chunks_received, 'audio_size_bytes': self.total_bytes})

        self.scheduler.complete()
        self._finished.set()
        if self.on_audio_complete:
            self.on_audio_complete()

    def _handle_stop_confirmed(self, message: ControlMessage) -> None:
        self.logger.info(f"⏹️ Stop confirmed: {message.message or 'Generation stopped'}")
