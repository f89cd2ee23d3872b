"""
Speech-to-text streaming service.

Streams mono audio to the service and reports recognized text through
utterance (per segment) and transcription (per message) callbacks.
"""

from typing import Callable, Optional

from pydantic import BaseModel

from utils import get_logger
from utils.config import ServiceConfig, DEFAULT_STT_ENDPOINT
from utils.metrics import OperationType, get_metrics_collector
from .connection import StreamingConnection, HANDSHAKE_TIMEOUT
from .errors import StreamingError, UsageError
from .protocol import ControlKind, ControlMessage, TranscriptionHandshake, STT_AUDIO_CONFIG
from .resample import Samples, resample, encode_float32
from .session import Mode, Session
from .transcript import TranscriptAccumulator, TextCallback
from .transport import Transport, WebSocketTransport

ErrorCallback = Callable[[StreamingError], None]


class TranscriptionConfig(BaseModel):
    """Configuration for a transcription session"""
    api_key: str
    endpoint: str = DEFAULT_STT_ENDPOINT
    language: str = "en"
    enable_turn_detection: bool = False
    turn_detection_timeout: float = 0.6
    handshake_timeout: float = HANDSHAKE_TIMEOUT

    @classmethod
    def from_env(cls, **overrides) -> 'TranscriptionConfig':
        """Fill credential and endpoint from TALKSCRIBER_* variables"""
        service = ServiceConfig.from_env()
        values = {"api_key": service.api_key or "", "endpoint": service.stt_endpoint}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


class TranscriptionService:
    """Real-time transcription over one streaming session"""

    def __init__(self,
                 config: TranscriptionConfig,
                 on_transcription: Optional[TextCallback] = None,
                 on_utterance: Optional[TextCallback] = None,
                 on_end_of_speech: Optional[TextCallback] = None,
                 on_error: Optional[ErrorCallback] = None,
                 transport: Optional[Transport] = None,
                 logger=None):
        self.config = config
        self.on_error = on_error
        self.logger = logger or get_logger(f"{__name__}.TranscriptionService")

        self.session = Session(config.endpoint, config.api_key, Mode.TRANSCRIBE)
        self.accumulator = TranscriptAccumulator(
            on_utterance=on_utterance,
            on_transcription=on_transcription,
            on_end_of_speech=on_end_of_speech,
            logger=self.logger
        )
        self.connection = StreamingConnection(
            self.session,
            transport or WebSocketTransport(logger=self.logger),
            handshake=TranscriptionHandshake(
                uid=self.session.id,
                language=config.language,
                auth=config.api_key,
                enable_turn_detection=config.enable_turn_detection,
                turn_detection_timeout=config.turn_detection_timeout
            ),
            listener=self,
            handshake_timeout=config.handshake_timeout,
            logger=self.logger
        )
        self.connection.dispatcher.register(ControlKind.SEGMENTS, self._handle_segments)
        self.samples_sent = 0

    @property
    def session_id(self) -> str:
        return self.session.id

    async def connect(self) -> None:
        await self.connection.connect()

    def send(self, samples: Samples, sample_rate: int) -> None:
        """Resample to 16kHz and upload one block of mono float samples"""
        if not self.connection.is_ready:
            raise UsageError(f"Not authenticated (state: {self.connection.state.value}). Call connect() first.")

        resampled = resample(samples, sample_rate, STT_AUDIO_CONFIG.sample_rate)
        payload = encode_float32(resampled)
        self.connection.send_audio(payload)
        self.samples_sent += len(resampled)
        get_metrics_collector().increment(OperationType.AUDIO_UPLOAD.value, len(payload))

    def is_connected(self) -> bool:
        return self.connection.is_ready

    def close(self) -> None:
        self.connection.close()

    async def __aenter__(self) -> 'TranscriptionService':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Connection listener

    def connection_ready(self) -> None:
        self.logger.info(f"🎤 Ready to stream audio (language: {self.config.language})")

    def connection_failed(self, error: StreamingError) -> None:
        if self.on_error:
            self.on_error(error)

    def connection_closed(self, code: int) -> None:
        seconds = self.samples_sent / STT_AUDIO_CONFIG.sample_rate
        self.logger.info(f"🔌 Transcription session ended after streaming {seconds:.1f}s of audio")

    def _handle_segments(self, message: ControlMessage) -> None:
        text = self.accumulator.on_segments(message.segments or [])
        if text:
            get_metrics_collector().increment(OperationType.TRANSCRIPTION.value, len(text.split()))
