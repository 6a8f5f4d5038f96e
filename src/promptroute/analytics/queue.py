"""Background batching queue for analytics events.

Events are enqueued without blocking the caller. One worker task owned
by the queue uploads them in batches:

- as soon as `batch_size` events are waiting, or
- `batch_interval` seconds after the first event of a batch arrived.

`shutdown()` drains everything still queued before the worker exits.
Upload failures are logged and the batch dropped; they never reach the
code that produced the events.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from promptroute.analytics.utils import generate_session_id, user_fingerprint

logger = logging.getLogger(__name__)

MAX_PENDING = 10_000

_STOP = object()


@dataclass
class AnalyticsEvent:
    event_type: str
    data: dict[str, Any]
    library_version: str
    session_id: str = ""
    user_fingerprint: str = ""
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "session_id": self.session_id,
            "user_fingerprint": self.user_fingerprint,
            "library_version": self.library_version,
            "timestamp": int(self.timestamp * 1000),
            "data": self.data,
        }


class AnalyticsSink(Protocol):
    """Receives one batch of serialized events."""

    async def send(self, events: list[dict[str, Any]]) -> None:
        ...


class HttpAnalyticsSink:
    """POSTs event batches as a JSON array."""

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    async def send(self, events: list[dict[str, Any]]) -> None:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        if self._client is not None:
            resp = await self._client.post(
                self.endpoint, json=events, headers=headers, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.endpoint, json=events, headers=headers)
        resp.raise_for_status()


class AnalyticsQueue:
    """Owns the pending-event queue and the worker that uploads it.

    Usage:
        queue = AnalyticsQueue(HttpAnalyticsSink(url))
        queue.start()
        queue.enqueue(event)
        await queue.shutdown()
    """

    def __init__(
        self,
        sink: AnalyticsSink,
        batch_size: int = 50,
        batch_interval: float = 5.0,
        debug: bool = False,
    ):
        self.sink = sink
        self.batch_size = max(1, batch_size)
        self.batch_interval = batch_interval
        self.debug = debug

        self.session_id = generate_session_id()
        self.user_fingerprint = user_fingerprint()

        self._queue: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None
        self.sent = 0
        self.dropped = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker on the running loop. No-op if already running."""
        if self.is_running:
            return
        self._queue = asyncio.Queue(maxsize=MAX_PENDING)
        self._worker = asyncio.create_task(self._run(), name="promptroute-analytics")
        if self.debug:
            logger.info(f"Analytics queue started (session {self.session_id})")

    def enqueue(self, event: AnalyticsEvent) -> bool:
        """Queue an event for upload. Returns False if it was dropped."""
        if not self.is_running:
            logger.debug(f"Analytics queue not running; dropping {event.event_type}")
            self.dropped += 1
            return False

        event.session_id = self.session_id
        event.user_fingerprint = self.user_fingerprint
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Analytics queue full; dropping event")
            self.dropped += 1
            return False

        if self.debug:
            logger.debug(
                f"Analytics event queued: {event.event_type} "
                f"(pending {self._queue.qsize()})")
        return True

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        batch: list[AnalyticsEvent] = []
        deadline: float | None = None

        while True:
            timeout = None if deadline is None else max(0.0, deadline - loop.time())
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout)
            except asyncio.TimeoutError:
                item = None

            if item is _STOP:
                if batch:
                    await self._send(batch)
                return

            if item is not None:
                batch.append(item)
                if deadline is None:
                    deadline = loop.time() + self.batch_interval

            if batch and (len(batch) >= self.batch_size or item is None):
                await self._send(batch)
                batch, deadline = [], None

    async def _send(self, batch: list[AnalyticsEvent]) -> None:
        try:
            await self.sink.send([e.to_dict() for e in batch])
            self.sent += len(batch)
            if self.debug:
                logger.debug(f"Uploaded {len(batch)} analytics events")
        except Exception as e:
            self.dropped += len(batch)
            logger.warning(f"Failed to upload {len(batch)} analytics events: {e}")

    async def shutdown(self) -> None:
        """Flush everything pending, then stop the worker."""
        if not self.is_running:
            return
        await self._queue.put(_STOP)
        await self._worker
        self._worker = None
        logger.debug(f"Analytics queue stopped ({self.sent} sent, {self.dropped} dropped)")

    def status(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "pending": self._queue.qsize() if self._queue is not None else 0,
            "sent": self.sent,
            "dropped": self.dropped,
            "session_id": self.session_id,
        }
