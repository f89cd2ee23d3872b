"""
Protocol definitions for Talkscriber streaming sessions.

This module defines the JSON control messages exchanged with the speech
service. Audio travels as binary frames and is not modelled here.
"""

from enum import Enum
from typing import Optional, List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

class ControlKind(str, Enum):
    """Kinds of inbound control messages"""
    READY = "ready"
    UNAUTHORIZED = "unauthorized"
    ERROR = "error"
    WAIT = "wait"              # Server busy, carries an estimated wait
    DISCONNECT = "disconnect"  # Server is about to end the session
    SEGMENTS = "segments"
    AUDIO_COMPLETE = "audio_complete"
    STOP_CONFIRMED = "stop_confirmed"
    UNKNOWN = "unknown"

# Kinds routed while the handshake is still in progress
HANDSHAKE_KINDS = frozenset({
    ControlKind.READY,
    ControlKind.UNAUTHORIZED,
    ControlKind.ERROR,
    ControlKind.WAIT,
    ControlKind.DISCONNECT,
})

class AudioConfig(BaseModel):
    """Audio format parameters"""
    channels: int = 1
    sample_rate: int = 16000
    bits_per_sample: int = 16

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.channels * self.bits_per_sample // 8

# Uploads are float32 mono at 16kHz
STT_AUDIO_CONFIG = AudioConfig(channels=1, sample_rate=16000, bits_per_sample=32)
# Synthesized audio arrives as 16-bit mono PCM at 24kHz
TTS_AUDIO_CONFIG = AudioConfig(channels=1, sample_rate=24000, bits_per_sample=16)

class TranscriptSegment(BaseModel):
    """One fragment of recognized text"""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    text: str
    is_end_of_utterance: bool = Field(default=False, alias="EOS")

    @field_validator("is_end_of_utterance", mode="before")
    @classmethod
    def _none_is_false(cls, value):
        return bool(value) if value is not None else False

class ControlMessage(BaseModel):
    """Inbound JSON control message.

    The service discriminates messages through several fields (`status`,
    `message`, `type`, presence of `segments`), so all of them are optional
    and `kind` resolves which one applies.
    """
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    status: Optional[str] = None
    message: Optional[Union[str, float]] = None
    session_id: Optional[str] = None
    segments: Optional[List[TranscriptSegment]] = None
    language: Optional[str] = None
    detected_language: Optional[str] = None
    language_confidence: Optional[float] = None

    @property
    def kind(self) -> ControlKind:
        """Classify this message"""
        msg_type = (self.type or "").lower()
        status = (self.status or "").upper()

        if self.message == "SERVER_READY" or msg_type in ("authenticated", "server_ready"):
            return ControlKind.READY
        if self.message == "UNAUTHORIZED" or msg_type == "unauthorized":
            return ControlKind.UNAUTHORIZED
        if status == "ERROR" or msg_type == "error":
            return ControlKind.ERROR
        if status == "WAIT":
            return ControlKind.WAIT
        if self.message == "DISCONNECT":
            return ControlKind.DISCONNECT
        if self.segments is not None:
            return ControlKind.SEGMENTS
        if msg_type == "audio_complete":
            return ControlKind.AUDIO_COMPLETE
        if msg_type == "stop_confirmed":
            return ControlKind.STOP_CONFIRMED
        return ControlKind.UNKNOWN

    @property
    def error_text(self) -> str:
        """Human readable error description"""
        return str(self.message) if self.message is not None else "Unknown error"

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> 'ControlMessage':
        """Create message from JSON string"""
        return cls.model_validate_json(data)

class OutboundMessage(BaseModel):
    """Base for messages the client sends"""

    def to_json(self) -> str:
        """Convert message to JSON string"""
        return self.model_dump_json()

class TranscriptionHandshake(OutboundMessage):
    """First frame of a speech-to-text session"""
    uid: str
    multilingual: bool = False
    language: str = "en"
    task: Literal["transcribe"] = "transcribe"
    auth: str
    enable_turn_detection: bool = False
    turn_detection_timeout: float = 0.6

class SynthesisHandshake(OutboundMessage):
    """First frame of a text-to-speech session"""
    uid: str
    auth: str
    type: Literal["tts"] = "tts"
    speaker_name: str
    text: str = ""

class SpeakRequest(OutboundMessage):
    """Request to synthesize a piece of text"""
    type: Literal["speak"] = "speak"
    text: str
    speaker: str
