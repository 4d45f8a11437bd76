"""
Job Task Pool
Supervised background tasks for generation jobs, optionally bounded.
"""

import asyncio
from typing import Any, Coroutine, Dict, Optional, Set

from ..utils.logger import get_logger

logger = get_logger()


class JobTaskPool:
    """Owns the background task of every running job."""

    def __init__(self, max_concurrency: Optional[int] = None):
        self._max_concurrency = max_concurrency
        self._semaphore: Optional[asyncio.Semaphore] = (
            asyncio.Semaphore(max_concurrency) if max_concurrency else None
        )
        self._tasks: Dict[str, asyncio.Task] = {}
        self._waiting_ids: Set[str] = set()
        self._active_ids: Set[str] = set()
        self._closed = False

    def spawn(self, job_id: str, work: Coroutine[Any, Any, None]) -> asyncio.Task:
        """Start a job's work in the background and return its task handle."""
        if self._closed:
            work.close()
            raise RuntimeError("Job task pool is stopped")

        self._waiting_ids.add(job_id)
        task = asyncio.create_task(self._run(job_id, work), name=f"job-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))
        return task

    async def _run(self, job_id: str, work: Coroutine[Any, Any, None]):
        try:
            if self._semaphore is not None:
                async with self._semaphore:
                    await self._execute(job_id, work)
            else:
                await self._execute(job_id, work)
        finally:
            self._waiting_ids.discard(job_id)
            # cancelled while waiting for a slot
            work.close()

    async def _execute(self, job_id: str, work: Coroutine[Any, Any, None]):
        self._waiting_ids.discard(job_id)
        self._active_ids.add(job_id)
        try:
            await work
        except asyncio.CancelledError:
            logger.warning(f"Job {job_id} cancelled")
            raise
        except Exception as exc:
            logger.exception(f"Unhandled error in job {job_id}: {exc}")
        finally:
            self._active_ids.discard(job_id)

    async def join(self):
        """Wait until every spawned job has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def stop(self):
        """Cancel outstanding jobs."""
        self._closed = True
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._waiting_ids.clear()
        self._active_ids.clear()
        if tasks:
            logger.info(f"Job task pool stopped ({len(tasks)} jobs cancelled)")

    def stats(self) -> dict:
        """Current pool statistics."""
        return {
            "waiting": len(self._waiting_ids),
            "active": len(self._active_ids),
            "max_concurrency": self._max_concurrency,
            "running": not self._closed,
        }
