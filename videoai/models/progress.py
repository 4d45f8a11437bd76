"""
Progress Event Models
Ephemeral notifications pushed over the progress channel
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from enum import Enum


class ProgressStage(str, Enum):
    """Generation stages in their fixed order"""
    ENHANCING = "enhancing"
    GENERATING = "generating"
    COMPOSITING = "compositing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STAGES = {
    ProgressStage.COMPLETED,
    ProgressStage.COMPLETED.value,
    ProgressStage.FAILED,
    ProgressStage.FAILED.value,
}

# Progress reported once each stage has finished
STAGE_PROGRESS: Dict[ProgressStage, float] = {
    ProgressStage.ENHANCING: 25,
    ProgressStage.GENERATING: 50,
    ProgressStage.COMPOSITING: 75,
    ProgressStage.FINALIZING: 95,
    ProgressStage.COMPLETED: 100,
    ProgressStage.FAILED: 0,
}


class ProgressEvent(BaseModel):
    """Progress of a single job"""
    job_id: str
    stage: ProgressStage
    progress: float = Field(ge=0, le=100)
    message: Optional[str] = None

    class Config:
        use_enum_values = True


class EventType(str, Enum):
    """Envelope types sent to subscribers"""
    PROGRESS = "progress"
    COMPLETED = "completed"
    ERROR = "error"


def progress_envelope(event: ProgressEvent) -> Dict[str, Any]:
    return {"type": EventType.PROGRESS.value, "data": event.model_dump(mode="json")}


def completion_envelope(job_id: str, video_url: str, thumbnail_url: str) -> Dict[str, Any]:
    return {
        "type": EventType.COMPLETED.value,
        "data": {
            "job_id": job_id,
            "video_url": video_url,
            "thumbnail_url": thumbnail_url,
        },
    }


def error_envelope(job_id: str, error: str) -> Dict[str, Any]:
    return {
        "type": EventType.ERROR.value,
        "data": {
            "job_id": job_id,
            "error": error,
        },
    }
