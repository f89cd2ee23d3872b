"""
Command line client for streaming transcription and speech synthesis.
"""

from .wav_source import load_wav, stream_samples
from .simple_client import main, parse_args

__all__ = ['load_wav', 'stream_samples', 'main', 'parse_args']
