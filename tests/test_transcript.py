"""
Tests for folding segments into utterance and transcription events.
"""

from talkscriber.engine.protocol import TranscriptSegment
from talkscriber.engine.transcript import TranscriptAccumulator


def make_accumulator(events):
    return TranscriptAccumulator(
        on_utterance=lambda text: events.append(("utterance", text)),
        on_transcription=lambda text: events.append(("transcription", text)),
        on_end_of_speech=lambda text: events.append(("end_of_speech", text)),
    )


def test_segments_produce_utterances_then_transcription():
    events = []
    accumulator = make_accumulator(events)

    result = accumulator.on_segments([TranscriptSegment(text="hello"), TranscriptSegment(text="world")])
    assert result == "hello world"
    assert events == [
        ("utterance", "hello"),
        ("utterance", "world"),
        ("transcription", "hello world"),
    ]
    assert accumulator.transcriptions == 1


def test_empty_batch_emits_nothing():
    events = []
    assert make_accumulator(events).on_segments([]) == ""
    assert events == []


def test_blank_segments_emit_utterances_only():
    events = []
    make_accumulator(events).on_segments([TranscriptSegment(text=" "), TranscriptSegment(text="")])
    assert events == [("utterance", " "), ("utterance", "")]


def test_buffer_does_not_carry_over_between_batches():
    events = []
    accumulator = make_accumulator(events)
    accumulator.on_segments([TranscriptSegment(text="first")])
    events.clear()

    assert accumulator.on_segments([TranscriptSegment(text="second")]) == "second"
    assert events[-1] == ("transcription", "second")


def test_end_of_utterance_is_reported():
    events = []
    segments = [TranscriptSegment(text="stop", EOS=True), TranscriptSegment(text="here")]
    make_accumulator(events).on_segments(segments)
    assert events == [
        ("utterance", "stop"),
        ("end_of_speech", "stop"),
        ("utterance", "here"),
        ("transcription", "stop here"),
    ]


def test_callbacks_are_optional():
    assert TranscriptAccumulator().on_segments([TranscriptSegment(text="quiet")]) == "quiet"
