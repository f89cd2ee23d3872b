"""
Reads audio files into mono float samples for streaming.
"""

import asyncio
from typing import Tuple

import numpy as np
import soundfile as sf

from utils import get_logger
from utils.metrics import OperationType, timing_decorator
from talkscriber.engine.errors import UnsupportedAudioFormat
from talkscriber.engine.stt import TranscriptionService

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 4096


@timing_decorator(OperationType.FILE_IO.value)
def load_wav(path: str) -> Tuple[np.ndarray, int]:
    """Decode an audio file into (mono float32 samples, sample rate)"""
    data, sample_rate = sf.read(path, dtype="float32", always_2d=True)
    channels = data.shape[1]
    logger.info(f"🎵 Audio format: {sample_rate}Hz, {channels} channel(s), {data.shape[0]} samples")
    if channels != 1:
        raise UnsupportedAudioFormat(f"Invalid audio format. Expected: mono, got {channels} channels")
    return data[:, 0], sample_rate


async def stream_samples(service: TranscriptionService, samples: np.ndarray, sample_rate: int,
                         chunk_size: int = DEFAULT_CHUNK_SIZE, realtime: bool = True) -> int:
    """Send samples in blocks of `chunk_size`, paced like a live microphone.

    Returns the number of blocks sent.
    """
    chunk_wait = chunk_size / sample_rate if realtime else 0.0
    sent = 0
    for start in range(0, len(samples), chunk_size):
        service.send(samples[start:start + chunk_size], sample_rate)
        sent += 1
        await asyncio.sleep(chunk_wait)
    logger.debug(f"Streamed {sent} blocks of up to {chunk_size} samples")
    return sent
