"""In-memory stand-ins for the store, provider and subscriber connections"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from starlette.websockets import WebSocketState

from videoai.models.video import VideoGenerationRequest, VideoKind, VideoProject, VideoStatus
from videoai.services.generation_provider import GenerationParams, GenerationResult
from videoai.utils.exceptions import PersistenceError


class FakeConnection:
    def __init__(self, open: bool = True):
        self.client_state = WebSocketState.CONNECTED if open else WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.CONNECTED


class RecordingStore:
    """Keeps records in a dict and remembers every update call."""

    def __init__(self, fail_updates: bool = False):
        self.videos: Dict[str, VideoProject] = {}
        self.updates: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_updates = fail_updates

    async def create_video(self, video: VideoProject) -> VideoProject:
        self.videos[video.id] = video
        return video

    async def get_video(self, video_id: str) -> Optional[VideoProject]:
        return self.videos.get(video_id)

    async def update_video(self, video_id: str, changes: Dict[str, Any]) -> Optional[VideoProject]:
        self.updates.append((video_id, dict(changes)))
        if self.fail_updates:
            raise PersistenceError("database is locked", record_id=video_id)

        video = self.videos.get(video_id)
        if video is None:
            return None
        data = video.model_dump()
        data.update(changes)
        updated = VideoProject(**data)
        self.videos[video_id] = updated
        return updated

    async def delete_video(self, video_id: str) -> bool:
        return self.videos.pop(video_id, None) is not None

    async def list_processing(self) -> List[VideoProject]:
        return [video for video in self.videos.values() if video.status == VideoStatus.PROCESSING]


class StubProvider:
    """Provider with canned results; optionally blocks on a gate or fails."""

    def __init__(
        self,
        video_url: Optional[str] = "https://cdn.test/video.mp4",
        thumbnail_url: Optional[str] = None,
        fail_with: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
        thumbnail_error: Optional[Exception] = None,
    ):
        self.video_url = video_url
        self.thumbnail_url = thumbnail_url
        self.fail_with = fail_with
        self.gate = gate
        self.thumbnail_error = thumbnail_error
        self.calls: List[str] = []

    async def enhance_prompt(self, prompt: str, style: Optional[str] = None) -> str:
        self.calls.append("enhance")
        return f"{prompt}, golden hour lighting"

    async def _result(self) -> GenerationResult:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return GenerationResult(
            video_url=self.video_url,
            description="A planned video",
            metadata={"scenes": ["Opening"], "error": "stale"},
        )

    async def generate_from_text(self, params: GenerationParams) -> GenerationResult:
        self.calls.append("text")
        return await self._result()

    async def generate_from_image(self, image_url: str, params: GenerationParams) -> GenerationResult:
        self.calls.append("image")
        return await self._result()

    async def generate_thumbnail(self, prompt: str, asset_id: Optional[str] = None) -> Optional[str]:
        self.calls.append("thumbnail")
        if self.thumbnail_error is not None:
            raise self.thumbnail_error
        return self.thumbnail_url


def text_request(**overrides) -> VideoGenerationRequest:
    data = {"kind": VideoKind.TEXT_TO_VIDEO, "prompt": "A fox running through fresh snow"}
    data.update(overrides)
    return VideoGenerationRequest(**data)


def drain(subscription) -> List[Dict[str, Any]]:
    payloads = []
    while not subscription.queue.empty():
        payloads.append(subscription.queue.get_nowait())
    return payloads
