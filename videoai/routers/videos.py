"""
Videos Router
Video project CRUD, generation start and prompt enhancement.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from ..dependencies import (
    get_orchestrator,
    get_owner_id,
    get_provider,
    get_store,
    get_uploader,
)
from ..models.video import (
    VideoGenerationRequest,
    VideoProject,
    VideoProjectUpdate,
    VideoStyle,
)
from ..services.generation_provider import GenerationProvider
from ..services.job_orchestrator import JobOrchestrator
from ..services.s3_uploader import S3Uploader
from ..services.video_store import VideoStore
from ..utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["videos"])
logger = get_logger()


class EnhancePromptRequest(BaseModel):
    """Request to enhance a prompt without starting a generation."""
    prompt: Optional[str] = None
    style: Optional[VideoStyle] = None

    class Config:
        use_enum_values = True


class EnhancePromptResponse(BaseModel):
    enhanced: str


async def _get_owned_video(store: VideoStore, video_id: str, owner_id: str) -> VideoProject:
    video = await store.get_video(video_id)
    if not video or video.owner_id != owner_id:
        raise HTTPException(404, "Video not found")
    return video


@router.get("/videos", response_model=List[VideoProject])
async def list_videos(
    owner_id: str = Depends(get_owner_id),
    store: VideoStore = Depends(get_store),
):
    """List the requesting owner's videos, newest first."""
    return await store.list_videos(owner_id)


@router.get("/videos/{video_id}", response_model=VideoProject)
async def get_video(
    video_id: str,
    owner_id: str = Depends(get_owner_id),
    store: VideoStore = Depends(get_store),
):
    """Get a specific video."""
    return await _get_owned_video(store, video_id, owner_id)


@router.post(
    "/videos/generate",
    response_model=VideoProject,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate_video(
    request: VideoGenerationRequest,
    owner_id: str = Depends(get_owner_id),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Start a generation; the record is returned while it is still processing."""
    return await orchestrator.start_job(request, owner_id)


@router.patch("/videos/{video_id}", response_model=VideoProject)
async def update_video(
    video_id: str,
    update: VideoProjectUpdate,
    owner_id: str = Depends(get_owner_id),
    store: VideoStore = Depends(get_store),
):
    """Update a video's title or description."""
    await _get_owned_video(store, video_id, owner_id)

    changes = update.model_dump(exclude_unset=True)
    if not changes:
        return await _get_owned_video(store, video_id, owner_id)

    updated = await store.update_video(video_id, changes)
    if not updated:
        raise HTTPException(404, "Video not found")
    return updated


@router.delete("/videos/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: str,
    owner_id: str = Depends(get_owner_id),
    store: VideoStore = Depends(get_store),
    uploader: S3Uploader = Depends(get_uploader),
):
    """Delete a video and its locally generated thumbnail."""
    video = await _get_owned_video(store, video_id, owner_id)

    if not await store.delete_video(video_id):
        raise HTTPException(404, "Video not found")

    thumbnail_key = f"thumbnails/{video_id}.png"
    if video.thumbnail_url and video.thumbnail_url.endswith(thumbnail_key):
        await uploader.delete_file(thumbnail_key)

    logger.info(f"Video deleted: {video_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/enhance-prompt", response_model=EnhancePromptResponse)
async def enhance_prompt(
    request: EnhancePromptRequest,
    provider: GenerationProvider = Depends(get_provider),
):
    """Enhance a prompt for better generation results."""
    if not request.prompt:
        raise HTTPException(400, "Prompt is required")

    enhanced = await provider.enhance_prompt(request.prompt, request.style)
    return EnhancePromptResponse(enhanced=enhanced)
