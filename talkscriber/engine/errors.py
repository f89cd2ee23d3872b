"""
Error kinds raised by the streaming engine.

Every fatal error is delivered once to the session's error callback and moves
the connection to FAILED; `connect()` raises the same instance.
"""

from typing import Optional


class StreamingError(Exception):
    """Base class for all streaming engine errors"""


class AuthenticationFailed(StreamingError):
    """The server rejected the credential, or closed during the handshake"""

    def __init__(self, message: str = "Authentication failed. Please check your API key.",
                 code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class ServerError(StreamingError):
    """The server reported an error through a control message"""

    def __init__(self, message: str):
        super().__init__(f"Server error: {message}")
        self.message = message


class HandshakeTimeout(StreamingError):
    """No control message arrived before the handshake timer expired"""

    def __init__(self, timeout: float):
        super().__init__(f"Connection timed out. No response from server after {timeout:.1f}s.")
        self.timeout = timeout


class TransportError(StreamingError):
    """The underlying socket failed to open or errored"""


class AbnormalDisconnect(StreamingError):
    """The server dropped an established session"""

    def __init__(self, code: int, reason: str = ""):
        message = f"Connection closed unexpectedly (Code: {code})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.code = code
        self.reason = reason


class UsageError(StreamingError):
    """The caller invoked an operation in a state that does not allow it"""


class UnsupportedAudioFormat(StreamingError):
    """Audio that is not mono linear PCM"""


class ProtocolViolation(StreamingError):
    """The server sent a frame that is not valid for this session's mode"""


class SessionClosed(StreamingError):
    """close() was called while connect() was still waiting for readiness"""
