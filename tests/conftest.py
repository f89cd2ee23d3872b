"""
Shared fixtures: a scripted transport and in-memory sinks.
"""

import asyncio
import json

import pytest

from talkscriber.engine.connection import StreamingConnection
from talkscriber.engine.protocol import TranscriptionHandshake
from talkscriber.engine.session import Mode, Session


class FakeTransport:
    """Transport whose socket events are emitted by the test"""

    def __init__(self):
        self.uri = None
        self.events = None
        self.sent = []
        self.close_calls = []

    def open(self, uri, events):
        self.uri = uri
        self.events = events

    def send(self, data):
        self.sent.append(data)

    def close(self, code=1000, reason=""):
        self.close_calls.append((code, reason))

    @property
    def closed(self):
        return bool(self.close_calls)

    @property
    def sent_json(self):
        return [json.loads(item) for item in self.sent if isinstance(item, str)]

    @property
    def sent_binary(self):
        return [item for item in self.sent if isinstance(item, bytes)]

    def emit_open(self):
        self.events.on_open()

    def emit_json(self, payload):
        self.events.on_message(json.dumps(payload))

    def emit_text(self, text):
        self.events.on_message(text)

    def emit_binary(self, data):
        self.events.on_message(data)

    def emit_error(self, error):
        self.events.on_error(error)

    def emit_close(self, code=1000, reason=""):
        self.events.on_close(code, reason)


class FakeSink:
    """Output sink recording writes"""

    def __init__(self):
        self.writes = []
        self.ended = False

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)

    def end(self):
        self.ended = True


class RecordingListener:
    def __init__(self):
        self.ready = 0
        self.failures = []
        self.closed = []

    def connection_ready(self):
        self.ready += 1

    def connection_failed(self, error):
        self.failures.append(error)

    def connection_closed(self, code):
        self.closed.append(code)


async def start_connect(target):
    """Start target.connect() and let it run until it waits for readiness"""
    task = asyncio.create_task(target.connect())
    await asyncio.sleep(0)
    return task


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def session():
    return Session("wss://stt.example.test:9090", "secret-key", Mode.TRANSCRIBE)


@pytest.fixture
def connection(session, transport, listener):
    handshake = TranscriptionHandshake(uid=session.id, auth=session.credential)
    return StreamingConnection(session, transport, handshake, listener=listener, handshake_timeout=0.2)
