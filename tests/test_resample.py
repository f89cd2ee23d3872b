"""
Tests for sample-rate conversion and the upload encoding.
"""

import numpy as np
import pytest

from talkscriber.engine.errors import UnsupportedAudioFormat
from talkscriber.engine.resample import (
    resample, output_length, encode_float32
)


@pytest.fixture
def noise():
    return np.random.default_rng(7).uniform(-1.0, 1.0, size=1000).astype(np.float32)


@pytest.mark.parametrize("rate", [8000, 16000, 44100, 48000])
def test_same_rate_returns_input_unchanged(noise, rate):
    assert resample(noise, rate, rate) is noise


def test_same_rate_accepts_plain_lists():
    samples = [0.1, 0.2, 0.3]
    assert resample(samples, 16000, 16000) is samples


@pytest.mark.parametrize("source_rate", [8000, 22050, 44100, 48000])
def test_endpoints_are_preserved(noise, source_rate):
    out = resample(noise, source_rate, 16000)
    assert out[0] == noise[0]
    assert out[-1] == noise[-1]


@pytest.mark.parametrize("length,source_rate", [
    (1000, 44100),
    (4096, 48000),
    (4096, 8000),
    (441, 44100),
    (3, 22050),
])
def test_output_length_tracks_rate_ratio(length, source_rate):
    samples = np.linspace(-1.0, 1.0, length, dtype=np.float32)
    out = resample(samples, source_rate, 16000)
    assert abs(len(out) - round(length * 16000 / source_rate)) <= 1
    assert len(out) == output_length(length, source_rate, 16000)
    assert out.dtype == np.float32


def test_upsampling_interpolates_linearly():
    out = resample([0.0, 1.0], 8000, 16000)
    assert len(out) == 4
    assert out == pytest.approx([0.0, 1 / 3, 2 / 3, 1.0], abs=1e-6)


def test_input_is_not_modified(noise):
    original = noise.copy()
    resample(noise, 48000, 16000)
    np.testing.assert_array_equal(noise, original)


def test_empty_input_gives_empty_output():
    out = resample(np.zeros(0, dtype=np.float32), 44100, 16000)
    assert len(out) == 0


def test_single_output_sample_keeps_first_input_sample():
    out = resample([0.5, -0.25], 16000, 8000)
    assert list(out) == [0.5]


def test_stereo_input_is_rejected():
    with pytest.raises(UnsupportedAudioFormat):
        resample(np.zeros((100, 2), dtype=np.float32), 44100, 16000)


@pytest.mark.parametrize("source_rate,target_rate", [(0, 16000), (-1, 16000), (16000, 0)])
def test_invalid_rates_are_rejected(source_rate, target_rate):
    with pytest.raises(ValueError):
        resample([0.0, 1.0], source_rate, target_rate)


def test_encode_float32_is_little_endian():
    payload = encode_float32([1.0, -0.5])
    assert len(payload) == 8
    assert list(np.frombuffer(payload, dtype='<f4')) == [1.0, -0.5]
