"""
Settings Router
Reports service configuration and runtime status
"""

from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..config import get_settings
from ..dependencies import get_broadcaster, get_task_pool
from ..services.progress_broadcaster import ProgressBroadcaster
from ..services.task_pool import JobTaskPool

router = APIRouter(prefix="/api/settings", tags=["settings"])


class ServiceStatus(BaseModel):
    """Status of an external service"""
    name: str
    configured: bool
    status: str


class SettingsResponse(BaseModel):
    """Current settings response"""
    gemini_text_model: str
    gemini_image_model: str
    generation_timeout_seconds: Optional[float]
    max_concurrent_jobs: Optional[int]
    services: List[ServiceStatus]


@router.get("/", response_model=SettingsResponse)
async def get_current_settings():
    """Get current application settings and service status"""
    settings = get_settings()

    services = [
        ServiceStatus(
            name="Gemini AI",
            configured=bool(settings.gemini_api_key),
            status="Ready" if settings.gemini_api_key else "Mock generation (API key not set)"
        ),
        ServiceStatus(
            name="AWS S3",
            configured=bool(settings.aws_access_key_id and settings.s3_bucket_name),
            status="Ready" if settings.aws_access_key_id else "Local storage"
        ),
        ServiceStatus(
            name="API Security",
            configured=bool(settings.api_key),
            status="API key protected" if settings.api_key else "API key disabled"
        )
    ]

    return SettingsResponse(
        gemini_text_model=settings.gemini_text_model,
        gemini_image_model=settings.gemini_image_model,
        generation_timeout_seconds=settings.generation_timeout_seconds,
        max_concurrent_jobs=settings.max_concurrent_jobs,
        services=services
    )


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "app": settings.app_name
    }


@router.get("/system-status")
async def get_system_status(
    pool: JobTaskPool = Depends(get_task_pool),
    broadcaster: ProgressBroadcaster = Depends(get_broadcaster),
):
    """Get generation and progress channel status"""
    pool_stats = pool.stats()
    return {
        "jobs": {
            "waiting": pool_stats["waiting"],
            "active": pool_stats["active"],
            "max_concurrency": pool_stats["max_concurrency"],
            "running": pool_stats["running"],
        },
        "progress_channel": {
            "subscribers": broadcaster.subscriber_count,
        },
    }
