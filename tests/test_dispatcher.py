"""
Tests for frame decoding, message classification and routing.
"""

import logging

import pytest

from talkscriber.engine.dispatcher import (
    BinaryFrame, ControlFrame, MessageDispatcher, decode_frame
)
from talkscriber.engine.errors import ProtocolViolation
from talkscriber.engine.protocol import ControlKind, ControlMessage
from talkscriber.engine.session import Mode, Session


def control(payload):
    return ControlFrame(ControlMessage.model_validate(payload))


@pytest.mark.parametrize("payload,kind", [
    ({"message": "SERVER_READY"}, ControlKind.READY),
    ({"type": "authenticated"}, ControlKind.READY),
    ({"status": "ERROR", "message": "UNAUTHORIZED"}, ControlKind.UNAUTHORIZED),
    ({"type": "unauthorized"}, ControlKind.UNAUTHORIZED),
    ({"status": "ERROR", "message": "boom"}, ControlKind.ERROR),
    ({"type": "error", "message": "boom"}, ControlKind.ERROR),
    ({"status": "WAIT", "message": 2.5}, ControlKind.WAIT),
    ({"message": "DISCONNECT"}, ControlKind.DISCONNECT),
    ({"segments": []}, ControlKind.SEGMENTS),
    ({"segments": [{"text": "hi", "EOS": True}]}, ControlKind.SEGMENTS),
    ({"type": "audio_complete"}, ControlKind.AUDIO_COMPLETE),
    ({"type": "stop_confirmed"}, ControlKind.STOP_CONFIRMED),
    ({"type": "something_new", "payload": 1}, ControlKind.UNKNOWN),
])
def test_control_message_kinds(payload, kind):
    assert ControlMessage.model_validate(payload).kind is kind


def test_segment_end_of_utterance_flag():
    message = ControlMessage.model_validate({"segments": [{"text": "a", "EOS": True}, {"text": "b", "EOS": None}]})
    assert [segment.is_end_of_utterance for segment in message.segments] == [True, False]


def test_decode_binary_frame():
    frame = decode_frame(bytearray(b"\x01\x02"))
    assert frame == BinaryFrame(b"\x01\x02")


def test_decode_control_frame():
    frame = decode_frame('{"message": "SERVER_READY", "uid": "abc"}')
    assert isinstance(frame, ControlFrame)
    assert frame.kind is ControlKind.READY


@pytest.mark.parametrize("raw", ["{broken", "[1, 2]", '"text"', '{"segments": "nope"}'])
def test_decode_drops_malformed_text(raw, caplog):
    with caplog.at_level(logging.WARNING):
        assert decode_frame(raw) is None
    assert "Dropping" in caplog.text


@pytest.fixture
def tts_session():
    return Session("wss://tts.example.test:9099", "key", Mode.SYNTHESIZE)


def test_handler_receives_message(tts_session):
    dispatcher = MessageDispatcher(tts_session)
    received = []
    dispatcher.register(ControlKind.AUDIO_COMPLETE, received.append)

    dispatcher.dispatch(control({"type": "audio_complete"}))
    assert len(received) == 1
    assert received[0].type == "audio_complete"


def test_unknown_kind_is_ignored(tts_session, caplog):
    dispatcher = MessageDispatcher(tts_session)
    with caplog.at_level(logging.DEBUG):
        dispatcher.dispatch(control({"type": "brand_new"}))
    assert "unknown" in caplog.text


def test_session_id_updated_before_handler_runs(tts_session):
    dispatcher = MessageDispatcher(tts_session)
    seen = []
    dispatcher.register(ControlKind.AUDIO_COMPLETE, lambda message: seen.append(tts_session.id))

    dispatcher.dispatch(control({"type": "audio_complete", "session_id": "srv-1"}))
    assert seen == ["srv-1"]
    assert tts_session.id == "srv-1"


def test_empty_session_id_is_not_adopted(tts_session):
    original = tts_session.id
    MessageDispatcher(tts_session).dispatch(control({"type": "audio_complete", "session_id": ""}))
    assert tts_session.id == original


def test_non_handshake_messages_discarded_before_ready(tts_session):
    dispatcher = MessageDispatcher(tts_session)
    completed, errors = [], []
    dispatcher.register(ControlKind.AUDIO_COMPLETE, completed.append)
    dispatcher.register(ControlKind.ERROR, errors.append)

    dispatcher.dispatch(control({"type": "audio_complete", "session_id": "srv-2"}), ready=False)
    dispatcher.dispatch(control({"status": "ERROR", "message": "x"}), ready=False)
    assert completed == []
    assert len(errors) == 1
    assert tts_session.id == "srv-2"


def test_audio_chunks_are_numbered_in_order(tts_session):
    dispatcher = MessageDispatcher(tts_session)
    chunks = []
    dispatcher.register_audio(chunks.append)

    for data in (b"a", b"bb", b"ccc"):
        dispatcher.dispatch(BinaryFrame(data))
    assert [(chunk.data, chunk.sequence) for chunk in chunks] == [(b"a", 0), (b"bb", 1), (b"ccc", 2)]
    assert dispatcher.chunks_received == 3
    assert len(chunks[2]) == 3


def test_audio_before_ready_is_discarded(tts_session):
    dispatcher = MessageDispatcher(tts_session)
    chunks = []
    dispatcher.register_audio(chunks.append)
    dispatcher.dispatch(BinaryFrame(b"early"), ready=False)
    assert chunks == []


def test_binary_without_audio_handler_is_violation():
    session = Session("wss://stt.example.test:9090", "key", Mode.TRANSCRIBE)
    with pytest.raises(ProtocolViolation):
        MessageDispatcher(session).dispatch(BinaryFrame(b"\x00"))
