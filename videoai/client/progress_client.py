"""
Progress Client
Follows the progress channel, keeps the latest event per job and reconnects with backoff.
"""

import asyncio
import inspect
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import aiohttp

from ..models.progress import TERMINAL_STAGES, EventType, ProgressEvent
from ..utils.backoff import ExponentialBackoff
from ..utils.logger import get_logger

logger = get_logger()

InvalidateCallback = Callable[[], Union[None, Awaitable[None]]]


class ProgressTracker:
    """Latest progress event per job, reduced from channel envelopes."""

    def __init__(self):
        self._progress: Dict[str, ProgressEvent] = {}

    @property
    def progress_map(self) -> Dict[str, ProgressEvent]:
        return dict(self._progress)

    @property
    def current_progress(self) -> Optional[ProgressEvent]:
        """First tracked job that has not reached a terminal stage."""
        for event in self._progress.values():
            if event.stage not in TERMINAL_STAGES:
                return event
        return None

    def get(self, job_id: str) -> Optional[ProgressEvent]:
        return self._progress.get(job_id)

    def apply(self, envelope: Dict[str, Any]) -> bool:
        """
        Apply one envelope.

        Returns True when the cached job list should be re-fetched.
        """
        message_type = envelope.get("type")
        data = envelope.get("data") or {}

        if message_type == EventType.PROGRESS.value:
            event = ProgressEvent(**data)
            if event.stage in TERMINAL_STAGES:
                self._progress.pop(event.job_id, None)
            else:
                self._progress[event.job_id] = event
            return False

        if message_type in (EventType.COMPLETED.value, EventType.ERROR.value):
            job_id = data.get("job_id")
            if job_id:
                self._progress.pop(job_id, None)
            if message_type == EventType.ERROR.value:
                logger.error(f"Error for video {job_id}: {data.get('error')}")
            else:
                logger.info(f"Video {job_id} completed")
            return True

        return False


class ProgressClient:
    """
    WebSocket client for ``/ws/progress``.

    Reconnects indefinitely while running: the Nth consecutive close waits
    ``min(seed * 2 ** (N - 1), 30 * seed)`` and a successful open resets the
    counter. ``close()`` cancels a pending reconnect and closes the socket.
    """

    def __init__(
        self,
        url: str,
        on_invalidate: Optional[InvalidateCallback] = None,
        backoff: Optional[ExponentialBackoff] = None,
        session: Optional[aiohttp.ClientSession] = None,
        headers: Optional[Dict[str, str]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.url = url
        self.on_invalidate = on_invalidate
        self.backoff = backoff or ExponentialBackoff(seed=1.0)
        self.headers = headers or {}
        self.tracker = ProgressTracker()
        self._session = session
        self._sleep = sleep
        self._ws = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def progress_map(self) -> Dict[str, ProgressEvent]:
        return self.tracker.progress_map

    @property
    def current_progress(self) -> Optional[ProgressEvent]:
        return self.tracker.current_progress

    def start(self) -> asyncio.Task:
        """Run the connection loop in the background."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def run(self):
        """Connect, consume and reconnect until closed."""
        self._running = True
        self._task = asyncio.current_task()
        own_session = self._session is None
        session = self._session or aiohttp.ClientSession()

        try:
            while self._running:
                try:
                    logger.info(f"Connecting to {self.url}")
                    async with session.ws_connect(self.url, headers=self.headers) as ws:
                        self._ws = ws
                        self.backoff.reset()
                        logger.info("Connected to progress server")
                        await self._consume(ws)
                except (aiohttp.ClientError, OSError) as exc:
                    logger.warning(f"Progress connection failed: {exc}")
                finally:
                    self._ws = None

                if not self._running:
                    break

                delay = self.backoff.failure()
                logger.info(f"Disconnected from progress server, reconnecting in {delay:.1f}s")
                await self._sleep(delay)
        finally:
            self._running = False
            if own_session:
                await session.close()

    async def _consume(self, ws):
        async for message in ws:
            if message.type == aiohttp.WSMsgType.TEXT:
                await self.handle_message(message.data)
            elif message.type == aiohttp.WSMsgType.ERROR:
                logger.error(f"WebSocket error: {ws.exception()}")
                break

    async def handle_message(self, raw: str):
        """Reduce one raw channel message."""
        try:
            envelope = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error(f"Error parsing message: {exc}")
            return

        if not isinstance(envelope, dict):
            return

        try:
            invalidate = self.tracker.apply(envelope)
        except ValueError as exc:
            logger.error(f"Invalid progress message: {exc}")
            return

        if invalidate and self.on_invalidate is not None:
            try:
                result = self.on_invalidate()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                # a failed refresh must not drop the connection
                logger.exception(f"Error refreshing video list: {exc}")

    async def close(self):
        """Stop reconnecting and close any open connection."""
        self._running = False
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._task = None


class VideoListCache:
    """Cached ``GET /api/videos`` result, re-fetched after invalidation."""

    def __init__(
        self,
        base_url: str,
        session: aiohttp.ClientSession,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.headers = headers or {}
        self.stale = True
        self._videos: List[Dict[str, Any]] = []

    def invalidate(self):
        self.stale = True

    async def get(self) -> List[Dict[str, Any]]:
        if self.stale:
            async with self.session.get(f"{self.base_url}/api/videos", headers=self.headers) as response:
                response.raise_for_status()
                self._videos = await response.json()
            self.stale = False
        return self._videos
