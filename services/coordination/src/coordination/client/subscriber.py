"""Client notification subscriber.

Keeps one websocket connection per process open to the notification
endpoint, reconnecting with exponential backoff. Every notification
frame is normalized, prepended to the store and shown as the toast.
Nothing here raises into the host application.
"""

import asyncio
import functools
import json
import logging
from contextlib import suppress
from typing import Any, Callable

import aiohttp

from services.coordination.src.coordination.client.normalize import NotificationRecord, normalize
from services.coordination.src.coordination.client.store import NotificationStore, ToastSlot
from services.coordination.src.coordination.config import settings

logger = logging.getLogger(__name__)

# Server frames that are not notifications
CONTROL_FRAMES = frozenset({"connected", "pong"})

EventHandler = Callable[[NotificationRecord], Any]


class NotificationSubscriber:
    """Owns the client's single notification connection."""

    def __init__(
        self,
        url: str | None = None,
        store: NotificationStore | None = None,
        toast: ToastSlot | None = None,
        *,
        reconnect_initial: float | None = None,
        reconnect_max: float | None = None,
    ):
        self.url = url or settings.notifications_url
        self.store = store or NotificationStore()
        self.toast = toast or ToastSlot()
        self.connected = False
        self.attempts = 0
        self._initial = (
            reconnect_initial if reconnect_initial is not None
            else settings.subscriber_reconnect_initial_seconds
        )
        self._max = (
            reconnect_max if reconnect_max is not None
            else settings.subscriber_reconnect_max_seconds
        )
        self._handlers: list[EventHandler] = []
        self._handler_tasks: set[asyncio.Task] = set()
        self._token: str | None = None
        self._task: asyncio.Task | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def connect(self, token: str | None = None) -> None:
        """Start the background connection. Calling it again while running is a no-op."""
        if self.running:
            return
        self._token = token
        self._stopping = False
        self._task = asyncio.create_task(self._run(), name="notification-subscriber")

    async def disconnect(self) -> None:
        self._stopping = True
        if self._ws is not None and not self._ws.closed:
            with suppress(Exception):
                await self._ws.close()
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        for task in list(self._handler_tasks):
            task.cancel()
        if self._handler_tasks:
            await asyncio.gather(*self._handler_tasks, return_exceptions=True)
        self.connected = False

    def on_event(self, handler: EventHandler) -> Callable[[], None]:
        """Register a callback for every normalized notification. Returns an unsubscribe function."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def handle_frame(self, frame: dict) -> NotificationRecord | None:
        """Normalize one raw frame and update both views."""
        event_type = frame.get("type") if isinstance(frame, dict) else None
        if not event_type or event_type in CONTROL_FRAMES:
            return None

        record = normalize(event_type, frame.get("payload"), frame.get("message"))
        self.store.add(record)
        self.toast.show(record.message, "info")

        for handler in list(self._handlers):
            try:
                result = handler(record)
                if asyncio.iscoroutine(result):
                    self._schedule(result, event_type)
            except Exception:
                logger.exception("subscriber_handler_failed", extra={"event_type": event_type})
        return record

    def _schedule(self, coro, event_type: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("subscriber_handler_skipped", extra={
                "event_type": event_type, "error": "async handler needs a running loop",
            })
            return
        task = loop.create_task(coro)
        self._handler_tasks.add(task)
        task.add_done_callback(functools.partial(self._handler_done, event_type))

    def _handler_done(self, event_type: str, task: asyncio.Task) -> None:
        self._handler_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "subscriber_handler_failed",
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"event_type": event_type},
            )

    async def _run(self) -> None:
        delay = self._initial
        params = {"token": self._token} if self._token else None
        async with aiohttp.ClientSession() as session:
            while not self._stopping:
                self.attempts += 1
                try:
                    async with session.ws_connect(self.url, params=params, heartbeat=30) as ws:
                        self._ws = ws
                        self.connected = True
                        delay = self._initial
                        logger.info("subscriber_connected", extra={"url": self.url})
                        async for msg in ws:
                            if msg.type == aiohttp.WSMsgType.TEXT:
                                self._on_text(msg.data)
                            elif msg.type == aiohttp.WSMsgType.ERROR:
                                break
                except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as exc:
                    logger.warning("subscriber_connection_failed", extra={
                        "url": self.url, "attempt": self.attempts, "error": str(exc),
                    })
                finally:
                    self._ws = None
                    self.connected = False

                if self._stopping:
                    break
                logger.info("subscriber_reconnecting", extra={"delay_seconds": delay})
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max)

    def _on_text(self, data: str) -> None:
        try:
            frame = json.loads(data)
        except ValueError:
            logger.warning("subscriber_bad_frame", extra={"size": len(data)})
            return
        try:
            self.handle_frame(frame)
        except Exception:
            logger.exception("subscriber_frame_failed")
