"""
Talkscriber streaming client.

This package provides:
- Real-time speech-to-text over a WebSocket session
- Real-time text-to-speech with buffered playback and WAV saving
- A command line client for both directions
"""

__version__ = "0.1.0"

from .engine import (
    TranscriptionConfig,
    TranscriptionService,
    SynthesisConfig,
    SpeechSynthesisService,
    StreamingError,
    ConnectionState
)

__all__ = [
    'TranscriptionConfig',
    'TranscriptionService',
    'SynthesisConfig',
    'SpeechSynthesisService',
    'StreamingError',
    'ConnectionState'
]
