"""
Sample-rate conversion and PCM helpers.

The service only accepts 16kHz audio. Conversion uses linear interpolation,
which is cheap and good enough for voice content.
"""

import math
from typing import Sequence, Union

import numpy as np

from .errors import UnsupportedAudioFormat

TARGET_SAMPLE_RATE = 16000

Samples = Union[Sequence[float], np.ndarray]


def output_length(input_length: int, source_rate: int, target_rate: int) -> int:
    """Number of samples produced when converting `input_length` samples"""
    return int(math.floor(input_length * target_rate / source_rate + 0.5))


def resample(samples: Samples, source_rate: int, target_rate: int = TARGET_SAMPLE_RATE) -> Samples:
    """Resample mono audio from `source_rate` to `target_rate`.

    Returns `samples` itself when the rates match. Otherwise returns a new
    float32 array whose first and last samples equal the input's first and
    last samples. The input is never modified.
    """
    if source_rate <= 0 or target_rate <= 0:
        raise ValueError(f"Sample rates must be positive (got {source_rate} -> {target_rate})")

    if np.ndim(samples) != 1:
        raise UnsupportedAudioFormat(f"Expected mono samples, got {np.ndim(samples)}-dimensional input")

    if source_rate == target_rate:
        return samples

    data = np.asarray(samples, dtype=np.float32)

    length = output_length(len(data), source_rate, target_rate)
    if len(data) == 0 or length == 0:
        return np.zeros(0, dtype=np.float32)
    if length == 1:
        return data[:1].copy()

    # Fractional source positions, spread so both endpoints line up exactly
    positions = np.linspace(0.0, len(data) - 1, num=length)
    left = np.floor(positions).astype(np.int64)
    right = np.minimum(left + 1, len(data) - 1)
    frac = (positions - left).astype(np.float32)

    out = data[left] + (data[right] - data[left]) * frac
    out[0] = data[0]
    out[-1] = data[-1]
    return out


def encode_float32(samples: Samples) -> bytes:
    """Serialize samples as little-endian float32, the upload wire format"""
    return np.asarray(samples, dtype='<f4').tobytes()
