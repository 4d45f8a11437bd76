"""Utils package initialization"""
from .logger import setup_logger, get_logger
from .exceptions import (
    VideoAIError,
    GenerationError,
    APIKeyError,
    JobTimeoutError,
    PersistenceError
)
from .backoff import ExponentialBackoff

__all__ = [
    "setup_logger",
    "get_logger",
    "VideoAIError",
    "GenerationError",
    "APIKeyError",
    "JobTimeoutError",
    "PersistenceError",
    "ExponentialBackoff"
]
