"""One live transport connection with its own outbound FIFO queue.

Dispatch never writes to a transport directly: it enqueues a frame and
the connection's writer task drains the queue in order. A slow or
stalled transport therefore only delays its own queue, and a full queue
drops the new frame instead of blocking the caller.
"""

import asyncio
import logging
import threading
import uuid
from contextlib import suppress
from typing import Any, Protocol

from services.coordination.src.coordination.config import settings
from services.coordination.src.coordination.core.errors import DispatchWriteFailure

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def send_json(self, data: Any) -> None:
        ...


class Connection:
    """A registered transport plus its writer task.

    ``start`` must be called from the event loop that owns the transport.
    ``offer`` may be called from any thread.
    """

    def __init__(
        self,
        transport: Transport,
        identity: str | None = None,
        *,
        queue_size: int | None = None,
        write_timeout: float | None = None,
        connection_id: str | None = None,
    ):
        self.id = connection_id or str(uuid.uuid4())
        self.identity = identity
        self.transport = transport
        self.delivered = 0
        self.dropped = 0
        self.failed = 0
        self._queue_size = queue_size if queue_size is not None else settings.dispatch_queue_size
        self._write_timeout = (
            write_timeout if write_timeout is not None else settings.dispatch_write_timeout_seconds
        )
        self._queue: asyncio.Queue | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None
        self._closed = False
        # Frames handed over from other threads and not yet queued
        self._in_flight = 0
        self._in_flight_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, identity={self.identity!r})"

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Create the queue and writer task on the running loop."""
        if self._task is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._task = self._loop.create_task(self._drain(), name=f"connection-writer-{self.id}")

    def offer(self, frame: dict) -> bool:
        """Enqueue a frame without blocking.

        Frames are queued in the order they reach the owning loop, whatever
        thread offered them. On the loop thread the result is exact: False
        means closed or queue full. From another thread True only means the
        frame was handed to the loop; a later drop is counted in ``dropped``.
        """
        if self._closed or self._loop is None or self._loop.is_closed():
            return False

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            with self._in_flight_lock:
                behind = self._in_flight > 0
                if behind:
                    self._in_flight += 1
            if not behind:
                return self._put(frame)
            # Queue after frames other threads have already handed over
            self._loop.call_soon(self._put_handed_over, frame)
            return True

        with self._in_flight_lock:
            self._in_flight += 1
        try:
            self._loop.call_soon_threadsafe(self._put_handed_over, frame)
        except RuntimeError:
            with self._in_flight_lock:
                self._in_flight -= 1
            return False
        return True

    async def join(self) -> None:
        """Wait until every frame queued so far has been written or dropped."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        self._closed = True
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task

    def _put_handed_over(self, frame: dict) -> None:
        with self._in_flight_lock:
            self._in_flight -= 1
        self._put(frame)

    def _put(self, frame: dict) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("dispatch_queue_full", extra={
                "connection_id": self.id,
                "identity": self.identity,
                "event_type": frame.get("type"),
            })
            return False
        return True

    async def _drain(self) -> None:
        while True:
            frame = await self._queue.get()
            try:
                await asyncio.wait_for(self.transport.send_json(frame), timeout=self._write_timeout)
                self.delivered += 1
            except Exception as exc:
                self.failed += 1
                failure = DispatchWriteFailure(self.identity, self.id, exc)
                logger.warning("dispatch_write_failed", extra={
                    "connection_id": self.id,
                    "identity": self.identity,
                    "event_type": frame.get("type"),
                    "error": str(failure),
                })
            finally:
                self._queue.task_done()
