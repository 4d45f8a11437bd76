"""
Job Orchestrator
Creates video projects and drives each one through the generation stages.
"""

import asyncio
from datetime import date, datetime
from typing import Any, Awaitable, Dict, Optional, TypeVar

from ..config import Settings, get_settings
from ..models.progress import STAGE_PROGRESS, ProgressEvent, ProgressStage
from ..models.video import VideoGenerationRequest, VideoKind, VideoProject, VideoStatus
from ..utils.exceptions import JobTimeoutError
from ..utils.logger import get_logger
from .generation_provider import GenerationParams, GenerationProvider, GenerationResult
from .progress_broadcaster import ProgressBroadcaster
from .task_pool import JobTaskPool
from .video_store import VideoStore

logger = get_logger()

T = TypeVar("T")

INTERRUPTED_MESSAGE = "Job interrupted by server restart"


class JobOrchestrator:
    """
    Runs generation jobs from creation to a terminal state.

    Each job's record is written only by its own background task while it is
    processing; the task ends with exactly one terminal write (completed or
    failed) followed by the matching notifications.
    """

    def __init__(
        self,
        store: VideoStore,
        provider: GenerationProvider,
        broadcaster: ProgressBroadcaster,
        pool: JobTaskPool,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.provider = provider
        self.broadcaster = broadcaster
        self.pool = pool
        self.settings = settings or get_settings()

    async def start_job(self, request: VideoGenerationRequest, owner_id: str) -> VideoProject:
        """
        Create a processing video project and start generating it.

        The prompt is enhanced before the record is created. Generation runs
        in the background; the returned record is not awaited on it.
        """
        enhanced_prompt = await self.provider.enhance_prompt(request.prompt, request.style)

        video = VideoProject(
            owner_id=owner_id,
            title=request.title or f"Video {date.today().isoformat()}",
            description=request.description or request.prompt,
            kind=request.kind,
            status=VideoStatus.PROCESSING,
            prompt=enhanced_prompt,
            source_image_url=request.source_image_url,
            duration=request.duration,
            resolution=request.resolution,
            style=request.style,
            effects=list(request.effects),
            camera_controls=request.camera_controls,
        )
        await self.store.create_video(video)

        self.pool.spawn(video.id, self.run_job(video))
        logger.info(f"Video {video.id} accepted ({video.kind}) for owner {owner_id}")
        return video

    async def run_job(self, video: VideoProject):
        """Drive one job through enhancing, generating, compositing and finalizing."""
        job_id = video.id
        try:
            self._emit(job_id, ProgressStage.ENHANCING, "Prompt enhanced")

            result = await self._call_provider(job_id, self._generate(video))
            self._emit(job_id, ProgressStage.GENERATING, "Video generated")

            thumbnail_url = await self._call_provider(
                job_id, self.provider.generate_thumbnail(video.prompt or "", job_id)
            )
            self._emit(job_id, ProgressStage.COMPOSITING, "Thumbnail composited")

            self._emit(job_id, ProgressStage.FINALIZING, "Finalizing video")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(f"Video {job_id} failed: {exc}")
            await self._fail(video, exc)
            return

        await self._complete(video, result, thumbnail_url)

    async def _generate(self, video: VideoProject) -> GenerationResult:
        params = GenerationParams(
            prompt=video.prompt or "",
            duration=video.duration or 5,
            resolution=video.resolution,
            style=video.style,
        )
        if video.kind == VideoKind.TEXT_TO_VIDEO:
            return await self.provider.generate_from_text(params)
        return await self.provider.generate_from_image(video.source_image_url or "", params)

    async def _call_provider(self, job_id: str, call: Awaitable[T]) -> T:
        timeout = self.settings.generation_timeout_seconds
        if not timeout:
            return await call
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError as exc:
            raise JobTimeoutError(job_id, timeout) from exc

    def _emit(self, job_id: str, stage: ProgressStage, message: Optional[str] = None):
        self.broadcaster.publish_progress(
            ProgressEvent(
                job_id=job_id,
                stage=stage,
                progress=STAGE_PROGRESS[stage],
                message=message,
            )
        )

    async def _complete(
        self,
        video: VideoProject,
        result: GenerationResult,
        thumbnail_url: Optional[str],
    ):
        job_id = video.id
        video_url = result.video_url or f"{self.settings.fallback_video_base_url}/{job_id}.mp4"
        thumbnail_url = thumbnail_url or f"{self.settings.fallback_thumbnail_base_url}/{job_id}.jpg"

        metadata: Dict[str, Any] = {"description": result.description, **result.metadata}
        metadata.pop("error", None)

        if not await self._persist_terminal(
            job_id,
            {
                "status": VideoStatus.COMPLETED,
                "video_url": video_url,
                "thumbnail_url": thumbnail_url,
                "metadata": metadata,
                "completed_at": datetime.utcnow(),
            },
        ):
            return

        self._emit(job_id, ProgressStage.COMPLETED, "Video ready")
        self.broadcaster.publish_completion(job_id, video_url, thumbnail_url)
        logger.info(f"Video {job_id} completed")

    async def _fail(self, video: VideoProject, exc: Exception):
        job_id = video.id
        message = str(exc) or exc.__class__.__name__

        if not await self._persist_terminal(
            job_id,
            {
                "status": VideoStatus.FAILED,
                "video_url": None,
                "thumbnail_url": None,
                "metadata": {"error": message},
            },
        ):
            return

        self._emit(job_id, ProgressStage.FAILED, message)
        self.broadcaster.publish_error(job_id, message)

    async def _persist_terminal(self, job_id: str, changes: Dict[str, Any]) -> bool:
        try:
            updated = await self.store.update_video(job_id, changes)
        except Exception as exc:
            logger.exception(f"Failed to persist terminal state for video {job_id}: {exc}")
            return False

        if updated is None:
            logger.warning(f"Video {job_id} was deleted while processing; result discarded")
            return False
        return True

    async def recover_interrupted(self) -> int:
        """Mark jobs left processing by a previous run as failed."""
        recovered = 0
        for video in await self.store.list_processing():
            await self.store.update_video(
                video.id,
                {
                    "status": VideoStatus.FAILED,
                    "video_url": None,
                    "thumbnail_url": None,
                    "metadata": {"error": INTERRUPTED_MESSAGE},
                },
            )
            recovered += 1

        if recovered:
            logger.warning(f"Marked {recovered} interrupted videos as failed")
        return recovered
