"""Models package initialization"""
from .video import (
    VideoProject,
    VideoProjectUpdate,
    VideoGenerationRequest,
    VideoKind,
    VideoStatus,
    CameraControls,
)
from .progress import ProgressEvent, ProgressStage, STAGE_PROGRESS
from .catalog import Template, Effect

__all__ = [
    "VideoProject",
    "VideoProjectUpdate",
    "VideoGenerationRequest",
    "VideoKind",
    "VideoStatus",
    "CameraControls",
    "ProgressEvent",
    "ProgressStage",
    "STAGE_PROGRESS",
    "Template",
    "Effect",
]
