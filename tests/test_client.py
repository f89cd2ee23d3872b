"""
Tests for the command line client.
"""

import pytest

from talkscriber.client.simple_client import main, parse_args
from talkscriber.engine.tts import DEFAULT_TEST_TEXT


def test_parse_stt_arguments():
    args = parse_args(["--api-key", "k", "stt", "sample.wav", "--language", "sv", "--turn-detection"])
    assert args.command == "stt"
    assert args.wav == "sample.wav"
    assert args.language == "sv"
    assert args.turn_detection
    assert args.api_key == "k"
    assert args.chunk_size == 4096


def test_parse_tts_defaults():
    args = parse_args(["tts"])
    assert args.text == DEFAULT_TEST_TEXT
    assert args.speaker == "tara"
    assert args.min_buffer == 20
    assert not args.no_playback
    assert args.save is None


def test_command_is_required():
    with pytest.raises(SystemExit):
        parse_args([])


@pytest.mark.asyncio
async def test_missing_file_fails_cleanly(tmp_path):
    status = await main(["--api-key", "k", "stt", str(tmp_path / "missing.wav")])
    assert status == 1
