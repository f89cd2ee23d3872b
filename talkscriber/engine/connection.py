"""
Connection and authentication state machine.

    IDLE -> CONNECTING -> AUTHENTICATING -> READY -> CLOSING -> CLOSED

CONNECTING, AUTHENTICATING and READY can also move to FAILED. FAILED and
CLOSED are terminal: a session is never reconnected, callers build
a new one to retry.
"""

import asyncio
from typing import Optional, Protocol

from utils import get_logger
from utils.metrics import OperationType, TimerContext
from .dispatcher import MessageDispatcher, ControlFrame, decode_frame
from .errors import (
    StreamingError, AuthenticationFailed, ServerError, HandshakeTimeout,
    TransportError, AbnormalDisconnect, UsageError, SessionClosed
)
from .protocol import ControlKind, ControlMessage, OutboundMessage
from .session import ConnectionState, Session
from .transport import Transport, NORMAL_CLOSURE

HANDSHAKE_TIMEOUT = 5.0


class ConnectionListener(Protocol):
    """Lifecycle notifications for the service that owns a connection"""

    def connection_ready(self) -> None: ...

    def connection_failed(self, error: StreamingError) -> None: ...

    def connection_closed(self, code: int) -> None: ...


class StreamingConnection:
    """Owns the transport of one session and enforces its lifecycle.

    The connection is itself the `TransportEvents` target: the transport calls
    `on_open`, `on_message`, `on_error` and `on_close`. Inbound frames are
    decoded and handed to `dispatcher`, on which services register handlers
    for the payload kinds they care about.
    """

    def __init__(self,
                 session: Session,
                 transport: Transport,
                 handshake: OutboundMessage,
                 listener: Optional[ConnectionListener] = None,
                 handshake_timeout: float = HANDSHAKE_TIMEOUT,
                 logger=None):
        self.session = session
        self.transport = transport
        self.handshake = handshake
        self.listener = listener
        self.handshake_timeout = handshake_timeout
        self.logger = logger or get_logger(f"{__name__}.StreamingConnection")

        self.dispatcher = MessageDispatcher(session, logger=self.logger)
        self.dispatcher.register(ControlKind.READY, self._handle_ready)
        self.dispatcher.register(ControlKind.UNAUTHORIZED, self._handle_unauthorized)
        self.dispatcher.register(ControlKind.ERROR, self._handle_error)

        self._ready_waiter: Optional[asyncio.Future] = None
        self._handshake_timer: Optional[asyncio.TimerHandle] = None
        self._auth_response_received = False
        self._closing_intentionally = False
        self._timer = TimerContext(OperationType.HANDSHAKE.value, {'mode': session.mode.value})
        self.error: Optional[StreamingError] = None

    @property
    def state(self) -> ConnectionState:
        return self.session.state

    @property
    def is_ready(self) -> bool:
        return self.state is ConnectionState.READY

    # Caller operations

    async def connect(self) -> None:
        """Open the transport and authenticate.

        Returns once the server reports readiness; raises the fatal
        `StreamingError` otherwise.
        """
        if self.state is not ConnectionState.IDLE:
            raise UsageError(f"connect() is only valid on a new session (state: {self.state.value})")

        loop = asyncio.get_running_loop()
        self._ready_waiter = loop.create_future()
        self._set_state(ConnectionState.CONNECTING)
        self._timer.start()
        self._handshake_timer = loop.call_later(self.handshake_timeout, self._on_handshake_timeout)

        self.logger.info(f"🔗 Connecting to {self.session.endpoint} ({self.session.mode.value})...")
        try:
            self.transport.open(self.session.endpoint, self)
        except Exception as e:
            error = TransportError(f"Could not open transport: {e}")
            error.__cause__ = e
            self._fail(error)

        await self._ready_waiter

    def send_audio(self, data: bytes) -> None:
        """Forward a binary frame; only valid while READY"""
        self._require_ready("send audio")
        self.transport.send(data)

    def send_control(self, message: OutboundMessage) -> None:
        """Forward a JSON control message; only valid while READY"""
        self._require_ready("send a control message")
        self.transport.send(message.to_json())

    def close(self) -> None:
        """Close the session on purpose. Safe to call in any state."""
        state = self.state
        if state.is_terminal or state is ConnectionState.CLOSING:
            return

        self._cancel_handshake_timer()
        if state is ConnectionState.IDLE:
            self._set_state(ConnectionState.CLOSED)
            return

        self._closing_intentionally = True
        self._set_state(ConnectionState.CLOSING)
        self.logger.info("🔌 Closing connection...")
        if self._ready_waiter is not None and not self._ready_waiter.done():
            self._ready_waiter.set_exception(SessionClosed("Session closed before it became ready"))
        self.transport.close(NORMAL_CLOSURE, "client closing")

    # Transport events

    def on_open(self) -> None:
        if self.state is not ConnectionState.CONNECTING:
            return
        self._timer.checkpoint("transport_open")
        self.logger.debug("Transport opened, sending handshake")
        self._set_state(ConnectionState.AUTHENTICATING)
        self.transport.send(self.handshake.to_json())

    def on_message(self, data) -> None:
        if self.state not in (ConnectionState.AUTHENTICATING, ConnectionState.READY):
            self.logger.debug(f"Ignoring message received while {self.state.value}")
            return

        frame = decode_frame(data, logger=self.logger)
        if frame is None:
            return

        if isinstance(frame, ControlFrame) and not self._auth_response_received:
            self._auth_response_received = True
            self._cancel_handshake_timer()

        try:
            self.dispatcher.dispatch(frame, ready=self.is_ready)
        except StreamingError as e:
            self._fail(e)

    def on_error(self, error: Exception) -> None:
        self.logger.error(f"❌ Transport error: {error}")
        failure = TransportError(str(error) or error.__class__.__name__)
        failure.__cause__ = error
        self._fail(failure)

    def on_close(self, code: int, reason: str = "") -> None:
        """Classify a socket close.

        A normal closure (1000) initiated by the server while READY ends the
        session as CLOSED, the same as an intentional close. Any other code
        while READY is an `AbnormalDisconnect`.
        """
        state = self.state
        if state.is_terminal:
            return

        if self._closing_intentionally:
            self._set_state(ConnectionState.CLOSED)
            self.logger.info(f"🔌 Connection closed (code {code})")
            if self.listener:
                self.listener.connection_closed(code)
            return

        if state is ConnectionState.CONNECTING:
            self._fail(TransportError(f"Connection closed before it was established (Code: {code})"))
        elif state is ConnectionState.AUTHENTICATING:
            self._fail(AuthenticationFailed(code=code))
        elif code == NORMAL_CLOSURE:
            self._set_state(ConnectionState.CLOSED)
            self.logger.info("🔌 Server closed the connection normally")
            if self.listener:
                self.listener.connection_closed(code)
        else:
            self._fail(AbnormalDisconnect(code, reason))

    # Control message handlers

    def _handle_ready(self, message: ControlMessage) -> None:
        if self.state is not ConnectionState.AUTHENTICATING:
            self.logger.debug("Ignoring repeated ready message")
            return
        self._cancel_handshake_timer()
        self._set_state(ConnectionState.READY)
        self._timer.end()
        self.logger.info(f"✅ Authentication successful (session {self.session.id})")
        if self._ready_waiter is not None and not self._ready_waiter.done():
            self._ready_waiter.set_result(None)
        if self.listener:
            self.listener.connection_ready()

    def _handle_unauthorized(self, message: ControlMessage) -> None:
        self._fail(AuthenticationFailed())

    def _handle_error(self, message: ControlMessage) -> None:
        self._fail(ServerError(message.error_text))

    # Internals

    def _on_handshake_timeout(self) -> None:
        self._handshake_timer = None
        if self._auth_response_received:
            return
        if self.state in (ConnectionState.CONNECTING, ConnectionState.AUTHENTICATING):
            self._fail(HandshakeTimeout(self.handshake_timeout))

    def _fail(self, error: StreamingError) -> None:
        state = self.state
        if state.is_terminal or state is ConnectionState.CLOSING:
            self.logger.debug(f"Suppressing error while {state.value}: {error}")
            return

        self.error = error
        self._set_state(ConnectionState.FAILED)
        self._cancel_handshake_timer()
        self.logger.error(f"❌ {error}")
        self.transport.close(NORMAL_CLOSURE, "client error")

        if self._ready_waiter is not None and not self._ready_waiter.done():
            self._ready_waiter.set_exception(error)
        if self.listener:
            self.listener.connection_failed(error)

    def _require_ready(self, action: str) -> None:
        if not self.is_ready:
            raise UsageError(f"Cannot {action} while {self.state.value}. Call connect() first.")

    def _cancel_handshake_timer(self) -> None:
        if self._handshake_timer is not None:
            self._handshake_timer.cancel()
            self._handshake_timer = None

    def _set_state(self, state: ConnectionState) -> None:
        self.logger.debug(f"🔄 State: {self.session.state.value} -> {state.value}")
        self.session.state = state
