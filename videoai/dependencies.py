"""FastAPI dependency injection: owner identity and the services owned by the app."""

from typing import Optional

from fastapi import Header, Request

from .config import get_settings
from .services.generation_provider import GenerationProvider
from .services.job_orchestrator import JobOrchestrator
from .services.progress_broadcaster import ProgressBroadcaster
from .services.s3_uploader import S3Uploader
from .services.task_pool import JobTaskPool
from .services.video_store import VideoStore


async def get_owner_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Requesting principal; session handling lives in front of this service."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return get_settings().default_owner_id


def get_store(request: Request) -> VideoStore:
    return request.app.state.store


def get_provider(request: Request) -> GenerationProvider:
    return request.app.state.provider


def get_uploader(request: Request) -> S3Uploader:
    return request.app.state.provider.uploader


def get_broadcaster(request: Request) -> ProgressBroadcaster:
    return request.app.state.broadcaster


def get_task_pool(request: Request) -> JobTaskPool:
    return request.app.state.task_pool


def get_orchestrator(request: Request) -> JobOrchestrator:
    return request.app.state.orchestrator
