"""Client package initialization"""
from .progress_client import ProgressClient, ProgressTracker, VideoListCache

__all__ = ["ProgressClient", "ProgressTracker", "VideoListCache"]
