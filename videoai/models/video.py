"""
Video Project Data Models
Represents a video generation job and the request that starts it
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime
import uuid


class VideoKind(str, Enum):
    """Generation type, fixed at creation"""
    TEXT_TO_VIDEO = "text-to-video"
    IMAGE_TO_VIDEO = "image-to-video"


class VideoStatus(str, Enum):
    """Video project status"""
    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Resolution(str, Enum):
    SD = "720p"
    HD = "1080p"
    UHD = "4K"


class VideoStyle(str, Enum):
    CINEMATIC = "cinematic"
    ANIME = "anime"
    REALISTIC = "realistic"
    ARTISTIC = "artistic"


class CameraMovement(str, Enum):
    STATIC = "static"
    PAN = "pan"
    ZOOM = "zoom"
    ORBIT = "orbit"


class CameraSpeed(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class CameraControls(BaseModel):
    """Camera settings applied to the generated video"""
    movement: Optional[CameraMovement] = None
    speed: Optional[CameraSpeed] = None
    angle: Optional[str] = None

    class Config:
        use_enum_values = True


class VideoGenerationRequest(BaseModel):
    """Request model for starting a video generation"""
    kind: VideoKind = Field(description="text-to-video or image-to-video")
    prompt: str = Field(min_length=10, description="Prompt must be at least 10 characters")
    title: Optional[str] = None
    description: Optional[str] = None
    source_image_url: Optional[str] = Field(None, description="Required by the provider for image-to-video")
    resolution: Resolution = Resolution.HD
    duration: int = Field(default=5, ge=3, le=60, description="Duration in seconds")
    style: Optional[VideoStyle] = None
    effects: List[str] = Field(default_factory=list)
    camera_controls: Optional[CameraControls] = None

    class Config:
        use_enum_values = True


class VideoProjectUpdate(BaseModel):
    """User-editable fields of a video project"""
    title: Optional[str] = None
    description: Optional[str] = None


class VideoProject(BaseModel):
    """Complete video project record"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str
    title: str
    description: Optional[str] = None
    kind: VideoKind
    status: VideoStatus = VideoStatus.DRAFT
    prompt: Optional[str] = None
    source_image_url: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None
    resolution: Resolution = Resolution.HD
    style: Optional[VideoStyle] = None
    effects: List[str] = Field(default_factory=list)
    camera_controls: Optional[CameraControls] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
