"""Services package initialization"""
from .video_store import VideoStore
from .s3_uploader import S3Uploader
from .generation_provider import GenerationProvider, GenerationParams, GenerationResult
from .progress_broadcaster import ProgressBroadcaster
from .task_pool import JobTaskPool
from .job_orchestrator import JobOrchestrator

__all__ = [
    "VideoStore",
    "S3Uploader",
    "GenerationProvider",
    "GenerationParams",
    "GenerationResult",
    "ProgressBroadcaster",
    "JobTaskPool",
    "JobOrchestrator"
]
