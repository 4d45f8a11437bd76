"""
Progress Broadcaster
Fans out job progress to every connected subscriber through per-subscriber queues.
"""

import asyncio
from typing import Any, Dict, List, Optional

from starlette.websockets import WebSocketState

from ..models.progress import (
    ProgressEvent,
    completion_envelope,
    error_envelope,
    progress_envelope,
)
from ..utils.logger import get_logger

logger = get_logger()

_DEFAULT_QUEUE_SIZE = 500


def _connection_open(connection: Any) -> bool:
    client_state = getattr(connection, "client_state", WebSocketState.CONNECTED)
    application_state = getattr(connection, "application_state", WebSocketState.CONNECTED)
    return (
        client_state == WebSocketState.CONNECTED
        and application_state == WebSocketState.CONNECTED
    )


class Subscription:
    """One subscriber and its outbound queue."""

    def __init__(self, connection: Any, max_queue_size: int = _DEFAULT_QUEUE_SIZE):
        self.connection = connection
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self.closed = False

    def is_open(self) -> bool:
        return not self.closed and _connection_open(self.connection)

    def enqueue(self, payload: Dict[str, Any]):
        """Queue a payload, dropping the oldest one when full."""
        if self.queue.full():
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
        try:
            self.queue.put_nowait(payload)
        except asyncio.QueueFull:
            pass

    async def next_payload(self) -> Dict[str, Any]:
        return await self.queue.get()


class ProgressBroadcaster:
    """
    Registry of progress channel subscribers.

    Every published event goes to every open subscriber; there is no
    filtering by job or owner. Delivery is at-most-once: nothing is
    buffered for subscribers that are not connected at publish time.
    """

    def __init__(self, max_queue_size: int = _DEFAULT_QUEUE_SIZE):
        self._max_queue_size = max_queue_size
        self._subscriptions: Dict[Any, Subscription] = {}
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop):
        """Set the loop used for thread-safe publish operations."""
        self._loop = loop

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def subscribe(self, connection: Any) -> Subscription:
        """Register a subscriber connection."""
        async with self._lock:
            subscription = self._subscriptions.get(connection)
            if subscription is None:
                subscription = Subscription(connection, self._max_queue_size)
                self._subscriptions[connection] = subscription
        logger.info(f"Progress subscriber connected. Total: {self.subscriber_count}")
        return subscription

    async def unsubscribe(self, connection: Any) -> bool:
        """Remove a subscriber; safe to call more than once."""
        async with self._lock:
            subscription = self._subscriptions.pop(connection, None)
        if subscription is None:
            return False
        subscription.closed = True
        logger.info(f"Progress subscriber removed. Total: {self.subscriber_count}")
        return True

    def publish_progress(self, event: ProgressEvent):
        """Send a progress update to all subscribers."""
        self._dispatch(progress_envelope(event))
        logger.info(f"Progress for job {event.job_id}: {event.stage} - {event.progress:g}%")

    def publish_completion(self, job_id: str, video_url: str, thumbnail_url: str):
        """Send a completion notification to all subscribers."""
        self._dispatch(completion_envelope(job_id, video_url, thumbnail_url))
        logger.info(f"Completion sent for job {job_id}")

    def publish_error(self, job_id: str, message: str):
        """Send an error notification to all subscribers."""
        self._dispatch(error_envelope(job_id, message))
        logger.info(f"Error sent for job {job_id}: {message}")

    def _dispatch(self, payload: Dict[str, Any]):
        if self._loop and self._loop.is_running():
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is not self._loop:
                self._loop.call_soon_threadsafe(self._fan_out, payload)
                return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Skipping broadcast; no running event loop")
            return
        self._fan_out(payload)

    def _fan_out(self, payload: Dict[str, Any]):
        # Runs on the loop thread without suspending, so the map is not mutated mid-iteration
        stale: List[Any] = []
        for connection, subscription in list(self._subscriptions.items()):
            if not subscription.is_open():
                stale.append(connection)
                continue
            subscription.enqueue(payload)

        for connection in stale:
            subscription = self._subscriptions.pop(connection, None)
            if subscription is not None:
                subscription.closed = True
                logger.debug("Dropped closed progress subscriber")
