"""
Transport capability used by the connection state machine.

A transport opens a socket, sends text/binary frames and reports what happens
on the socket through the `TransportEvents` callbacks.
"""

import asyncio
from typing import Optional, Protocol, Union

import websockets

from utils import get_logger

Frame = Union[str, bytes]

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006


class TransportEvents(Protocol):
    """Callbacks a transport delivers, in socket order"""

    def on_open(self) -> None: ...

    def on_message(self, data: Frame) -> None: ...

    def on_error(self, error: Exception) -> None: ...

    def on_close(self, code: int, reason: str) -> None: ...


class Transport(Protocol):
    """What the connection needs from a socket"""

    def open(self, uri: str, events: TransportEvents) -> None: ...

    def send(self, data: Frame) -> None: ...

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None: ...


class _CloseRequest:
    def __init__(self, code: int, reason: str):
        self.code = code
        self.reason = reason


class WebSocketTransport:
    """Transport backed by the `websockets` client.

    `send()` and `close()` are synchronous: frames go through an outbox that a
    writer task drains in order, so a close request is only performed after
    every frame queued before it has been written.
    """

    def __init__(self,
                 ping_interval: Optional[float] = 20,
                 ping_timeout: Optional[float] = 20,
                 open_timeout: Optional[float] = 10,
                 max_size: Optional[int] = 32 * 1024 * 1024,
                 logger=None):
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.open_timeout = open_timeout
        self.max_size = max_size
        self.logger = logger or get_logger(f"{__name__}.WebSocketTransport")

        self._events: Optional[TransportEvents] = None
        self._websocket = None
        self._outbox: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False
        self._close_notified = False

    @property
    def is_open(self) -> bool:
        return self._websocket is not None and not self._closing

    def open(self, uri: str, events: TransportEvents) -> None:
        if self._task is not None:
            raise RuntimeError("WebSocketTransport can only be opened once")
        self._events = events
        self._outbox = asyncio.Queue()
        self._task = asyncio.get_running_loop().create_task(self._run(uri))

    def send(self, data: Frame) -> None:
        if self._outbox is None or self._closing:
            raise RuntimeError("WebSocket is not open")
        self._outbox.put_nowait(data)

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        if self._closing or self._task is None:
            return
        self._closing = True
        if self._websocket is None:
            # Still connecting, abandon the attempt
            self._task.cancel()
        else:
            self._outbox.put_nowait(_CloseRequest(code, reason))

    async def _run(self, uri: str) -> None:
        try:
            websocket = await websockets.connect(
                uri,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
                open_timeout=self.open_timeout,
                max_size=self.max_size,
            )
        except asyncio.CancelledError:
            self._notify_close(NORMAL_CLOSURE, "closed before the socket opened")
            raise
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            self.logger.error(f"❌ Could not open {uri}: {e}")
            self._closing = True
            self._events.on_error(e)
            self._notify_close(ABNORMAL_CLOSURE, str(e))
            return

        self._websocket = websocket
        self.logger.info(f"🔗 Connected to {uri}")
        writer = asyncio.create_task(self._drain_outbox(websocket))
        try:
            self._events.on_open()
            async for message in websocket:
                self._deliver(message)
        except websockets.exceptions.ConnectionClosedError as e:
            self.logger.debug(f"Connection closed with error: {e}")
        finally:
            writer.cancel()

        code = websocket.close_code if websocket.close_code is not None else ABNORMAL_CLOSURE
        self._notify_close(code, websocket.close_reason or "")

    async def _drain_outbox(self, websocket) -> None:
        try:
            while True:
                item = await self._outbox.get()
                if isinstance(item, _CloseRequest):
                    await websocket.close(item.code, item.reason)
                    return
                await websocket.send(item)
        except websockets.exceptions.ConnectionClosed:
            self.logger.debug("Connection closed while sending - dropping queued frames")

    def _deliver(self, message: Frame) -> None:
        try:
            self._events.on_message(message)
        except Exception as e:
            # A failing handler does not stop the reader
            self.logger.exception(f"Error processing message: {e}")

    def _notify_close(self, code: int, reason: str) -> None:
        if self._close_notified:
            return
        self._close_notified = True
        self._websocket = None
        self._closing = True
        self._events.on_close(code, reason)
