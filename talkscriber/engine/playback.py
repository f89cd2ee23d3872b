"""
Buffering and real-time paced playback of streamed audio chunks.
"""

import asyncio
from collections import deque
from typing import Deque, Optional

from utils import get_logger
from utils.metrics import OperationType, log_performance, start_timer, end_timer
from .dispatcher import AudioChunk
from .protocol import AudioConfig, TTS_AUDIO_CONFIG
from .sinks import AudioSink, AudioStorage

MIN_AUDIO_BUFFER_SIZE = 20
PLAYBACK_PACING = 0.9


class AudioPlaybackScheduler:
    """Feeds network chunks to an output sink at playback speed.

    Chunks are buffered until `min_buffered_chunks` have arrived (or the
    stream is complete), then written one at a time. After each write the
    loop sleeps for a fraction (`pacing`) of the chunk's real duration, which
    keeps the device buffer topped up without overfilling it. Storage and
    file sinks receive every chunk as soon as it arrives.
    """

    def __init__(self,
                 sink: Optional[AudioSink] = None,
                 storage: Optional[AudioStorage] = None,
                 file_sink: Optional[AudioSink] = None,
                 min_buffered_chunks: int = MIN_AUDIO_BUFFER_SIZE,
                 audio_config: AudioConfig = TTS_AUDIO_CONFIG,
                 pacing: float = PLAYBACK_PACING,
                 logger=None):
        if min_buffered_chunks < 1:
            raise ValueError("min_buffered_chunks must be at least 1")
        self.sink = sink
        self.storage = storage
        self.file_sink = file_sink
        self.min_buffered_chunks = min_buffered_chunks
        self.audio_config = audio_config
        self.pacing = pacing
        self.logger = logger or get_logger(f"{__name__}.AudioPlaybackScheduler")

        self._buffer: Deque[AudioChunk] = deque()
        self._more = asyncio.Event()
        self._played = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._writing: Optional[asyncio.Future] = None
        self._started = False
        self._stream_complete = False
        self._closed = False
        self.chunks_played = 0

    @property
    def is_playing(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_complete(self) -> bool:
        """True once the stream ended and every buffered chunk was played"""
        return self._played.is_set()

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def chunk_duration(self, num_bytes: int) -> float:
        """Real-time duration in seconds of `num_bytes` of PCM"""
        return num_bytes / self.audio_config.bytes_per_second

    def begin_stream(self) -> None:
        """Re-arm for the next stream on the same session.

        A playback task still draining the previous stream keeps running and
        picks up the new chunks; otherwise playback restarts once the buffer
        threshold is reached again.
        """
        if self._closed:
            return
        self._stream_complete = False
        self._played.clear()
        if not self.is_playing:
            self._started = False

    def feed(self, chunk: AudioChunk) -> None:
        """Accept the next chunk in arrival order"""
        if self._closed:
            self.logger.debug(f"Dropping chunk #{chunk.sequence} after close")
            return
        if self._stream_complete:
            self.begin_stream()

        if self.storage is not None:
            self.storage.write(chunk.data)
        if self.file_sink is not None:
            self.file_sink.write(chunk.data)

        if self.sink is None:
            return

        self._buffer.append(chunk)
        self._more.set()
        if not self._started and len(self._buffer) >= self.min_buffered_chunks:
            self._start()

    def complete(self) -> None:
        """Mark the end of the stream; flushes whatever is still buffered"""
        if self._closed or self._stream_complete:
            return
        self._stream_complete = True

        if self.sink is None:
            self._played.set()
            return

        self._more.set()
        if not self._started:
            self._start()

    async def wait_until_played(self) -> None:
        await self._played.wait()

    def close(self) -> None:
        """Stop playback immediately and release the sinks"""
        if self._closed:
            return
        self._closed = True

        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._buffer.clear()

        if self.file_sink is not None:
            self.file_sink.end()
        if self.sink is not None:
            if self._writing is not None and not self._writing.done():
                # The device is released once the in-flight write returns
                self._writing.add_done_callback(self._end_sink_after_write)
            else:
                self.sink.end()
        self._played.set()

    def _end_sink_after_write(self, writing: asyncio.Future) -> None:
        if not writing.cancelled() and writing.exception() is not None:
            self.logger.debug(f"Write interrupted by close: {writing.exception()}")
        self.sink.end()

    def _start(self) -> None:
        self._started = True
        self.logger.info(f"▶️ Starting audio playback with {len(self._buffer)} buffered chunks")
        self._task = asyncio.get_running_loop().create_task(self._play())

    async def _play(self) -> None:
        start_time = start_timer()
        while True:
            if self._buffer:
                chunk = self._buffer.popleft()
                # Device writes block, so they run in the default executor
                self._writing = asyncio.get_running_loop().run_in_executor(None, self.sink.write, chunk.data)
                try:
                    written = await asyncio.shield(self._writing)
                except Exception as e:
                    self.logger.error(f"❌ Error playing audio chunk #{chunk.sequence}: {e}")
                    break
                self.chunks_played += 1
                self.logger.debug(f"Playing chunk #{chunk.sequence} ({written} bytes written, "
                                  f"{len(self._buffer)} buffered)")
                await asyncio.sleep(max(0.0, self.chunk_duration(len(chunk)) * self.pacing))
            elif self._stream_complete:
                break
            else:
                self._more.clear()
                await self._more.wait()

        self._played.set()
        log_performance(OperationType.PLAYBACK.value, end_timer(start_time),
                        {'chunks_played': self.chunks_played})
        # The sink stays open so trailing audio can drain; close() ends it
        self.logger.info("✅ Audio playback completed")
