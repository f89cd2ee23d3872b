"""
Streaming protocol engine for the Talkscriber speech service.
"""

from .errors import (
    StreamingError,
    AuthenticationFailed,
    ServerError,
    HandshakeTimeout,
    TransportError,
    AbnormalDisconnect,
    UsageError,
    UnsupportedAudioFormat,
    ProtocolViolation,
    SessionClosed
)

from .protocol import (
    ControlKind,
    ControlMessage,
    TranscriptSegment,
    TranscriptionHandshake,
    SynthesisHandshake,
    SpeakRequest,
    AudioConfig,
    STT_AUDIO_CONFIG,
    TTS_AUDIO_CONFIG
)

from .session import Mode, ConnectionState, Session
from .resample import resample, encode_float32
from .transport import Transport, TransportEvents, WebSocketTransport
from .dispatcher import AudioChunk, BinaryFrame, ControlFrame, MessageDispatcher, decode_frame
from .connection import StreamingConnection, ConnectionListener
from .transcript import TranscriptAccumulator
from .sinks import AudioInfo, AudioSink, AudioStorage, WavFileSink, PyAudioSink
from .playback import AudioPlaybackScheduler
from .stt import TranscriptionConfig, TranscriptionService
from .tts import SynthesisConfig, SpeechSynthesisService

__all__ = [
    'StreamingError',
    'AuthenticationFailed',
    'ServerError',
    'HandshakeTimeout',
    'TransportError',
    'AbnormalDisconnect',
    'UsageError',
    'UnsupportedAudioFormat',
    'ProtocolViolation',
    'SessionClosed',
    'ControlKind',
    'ControlMessage',
    'TranscriptSegment',
    'TranscriptionHandshake',
    'SynthesisHandshake',
    'SpeakRequest',
    'AudioConfig',
    'STT_AUDIO_CONFIG',
    'TTS_AUDIO_CONFIG',
    'Mode',
    'ConnectionState',
    'Session',
    'resample',
    'encode_float32',
    'Transport',
    'TransportEvents',
    'WebSocketTransport',
    'AudioChunk',
    'BinaryFrame',
    'ControlFrame',
    'MessageDispatcher',
    'decode_frame',
    'StreamingConnection',
    'ConnectionListener',
    'TranscriptAccumulator',
    'AudioInfo',
    'AudioSink',
    'AudioStorage',
    'WavFileSink',
    'PyAudioSink',
    'AudioPlaybackScheduler',
    'TranscriptionConfig',
    'TranscriptionService',
    'SynthesisConfig',
    'SpeechSynthesisService'
]
