"""
Inbound frame classification and routing.
"""

import json
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from pydantic import ValidationError

from utils import get_logger
from .errors import ProtocolViolation
from .protocol import ControlKind, ControlMessage, HANDSHAKE_KINDS
from .session import Session


@dataclass(frozen=True)
class AudioChunk:
    """One binary audio payload, numbered by arrival order"""
    data: bytes
    sequence: int

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class BinaryFrame:
    data: bytes


@dataclass(frozen=True)
class ControlFrame:
    message: ControlMessage

    @property
    def kind(self) -> ControlKind:
        return self.message.kind


InboundFrame = Union[BinaryFrame, ControlFrame]

ControlHandler = Callable[[ControlMessage], None]
AudioHandler = Callable[[AudioChunk], None]


def decode_frame(raw: Union[str, bytes, bytearray, memoryview], logger=None) -> Optional[InboundFrame]:
    """Turn a transport payload into a frame.

    Binary payloads become `BinaryFrame`. Text payloads are parsed as JSON
    control messages; anything malformed is logged and None is returned.
    """
    logger = logger or get_logger(__name__)

    if isinstance(raw, (bytes, bytearray, memoryview)):
        return BinaryFrame(bytes(raw))

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Dropping invalid JSON message: {raw[:200]!r}")
        return None

    if not isinstance(payload, dict):
        logger.warning(f"Dropping control message that is not an object: {type(payload).__name__}")
        return None

    try:
        return ControlFrame(ControlMessage.model_validate(payload))
    except ValidationError as e:
        logger.warning(f"Dropping malformed control message: {e.error_count()} validation error(s)")
        logger.debug(f"Malformed control message: {payload}")
        return None


class MessageDispatcher:
    """Routes decoded frames to the handler registered for their kind.

    Frames are handled synchronously and in the order they are dispatched.
    Binary frames become `AudioChunk`s for the audio handler; a session with
    no audio handler (transcription) treats them as a protocol violation.
    """

    def __init__(self, session: Session, logger=None):
        self.session = session
        self.logger = logger or get_logger(f"{__name__}.MessageDispatcher")
        self._handlers: Dict[ControlKind, ControlHandler] = {}
        self._audio_handler: Optional[AudioHandler] = None
        self._sequence = 0

        self.register(ControlKind.WAIT, self._log_wait)
        self.register(ControlKind.DISCONNECT, self._log_disconnect)

    def register(self, kind: ControlKind, handler: ControlHandler) -> None:
        """Register the handler for a control kind, replacing any previous one"""
        self._handlers[kind] = handler

    def register_audio(self, handler: AudioHandler) -> None:
        """Register the handler for binary audio frames"""
        self._audio_handler = handler

    @property
    def chunks_received(self) -> int:
        return self._sequence

    def dispatch(self, frame: InboundFrame, ready: bool = True) -> None:
        """Route one frame.

        While `ready` is False only handshake-related control kinds are routed;
        everything else is discarded.
        """
        if isinstance(frame, BinaryFrame):
            self._dispatch_audio(frame, ready)
            return

        message = frame.message
        self.session.adopt_server_id(message.session_id)

        if message.detected_language or message.language_confidence is not None:
            self.logger.info(f"🌐 Detected language: {message.detected_language or message.language} "
                             f"(confidence: {message.language_confidence})")

        kind = message.kind
        if not ready and kind not in HANDSHAKE_KINDS:
            self.logger.debug(f"Discarding '{kind.value}' message received before the session was ready")
            return

        handler = self._handlers.get(kind)
        if handler is None:
            self.logger.debug(f"Ignoring control message of kind '{kind.value}': {message.model_dump(exclude_none=True)}")
            return
        handler(message)

    def _dispatch_audio(self, frame: BinaryFrame, ready: bool) -> None:
        if self._audio_handler is None:
            raise ProtocolViolation(
                f"Received {len(frame.data)} bytes of binary data on a {self.session.mode.value} session"
            )
        if not ready:
            self.logger.debug(f"Discarding {len(frame.data)} bytes of audio received before the session was ready")
            return
        chunk = AudioChunk(data=frame.data, sequence=self._sequence)
        self._sequence += 1
        self._audio_handler(chunk)

    def _log_wait(self, message: ControlMessage) -> None:
        self.logger.warning(f"⏳ Server is busy, estimated wait: {message.message} minute(s)")

    def _log_disconnect(self, message: ControlMessage) -> None:
        self.logger.info("📞 Server announced the end of the session")
