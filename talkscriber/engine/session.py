"""
Session identity and lifecycle state.
"""

import uuid
from enum import Enum
from typing import Optional

from utils import get_logger

logger = get_logger(__name__)


class Mode(str, Enum):
    """Direction of a streaming session"""
    TRANSCRIBE = "transcribe"
    SYNTHESIZE = "tts"


class ConnectionState(str, Enum):
    """Lifecycle states of a session's connection"""
    IDLE = "idle"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionState.CLOSED, ConnectionState.FAILED)


class Session:
    """One logical streaming session.

    The endpoint, credential and mode are fixed at construction. The id starts
    as a client-generated uuid4 and is afterwards only replaced by a value the
    server supplies.
    """

    def __init__(self, endpoint: str, credential: str, mode: Mode,
                 session_id: Optional[str] = None):
        self._endpoint = endpoint
        self._credential = credential
        self._mode = Mode(mode)
        self._id = session_id or str(uuid.uuid4())
        self.state = ConnectionState.IDLE

    @property
    def id(self) -> str:
        return self._id

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def credential(self) -> str:
        return self._credential

    @property
    def mode(self) -> Mode:
        return self._mode

    def adopt_server_id(self, server_id: Optional[str]) -> bool:
        """Take over a session id assigned by the server.

        Returns True when the id changed.
        """
        if not server_id or server_id == self._id:
            return False
        logger.debug(f"🔖 Session id reassigned by server: {self._id} -> {server_id}")
        self._id = server_id
        return True

    def __repr__(self) -> str:
        return f"Session(id={self._id!r}, mode={self._mode.value}, state={self.state.value})"
