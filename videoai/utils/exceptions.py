"""
Custom Exceptions for VideoAI
Structured error handling with recovery hints
"""

from typing import Optional, Dict, Any


class VideoAIError(Exception):
    """Base exception for all VideoAI errors"""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        recoverable: bool = False,
        recovery_hint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to JSON-serializable dict"""
        return {
            "error": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
            "details": self.details
        }


# ============================================================================
# Generation Errors
# ============================================================================

class GenerationError(VideoAIError):
    """Error raised by the generation provider"""

    def __init__(self, message: str, kind: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            code="GENERATION_ERROR",
            recoverable=True,
            recovery_hint="The AI provider rejected or failed the request. Submit a new generation to retry.",
            details={"kind": kind, **kwargs}
        )


class APIKeyError(VideoAIError):
    """Missing or invalid API key"""

    def __init__(self, service: str):
        super().__init__(
            message=f"API key for {service} is missing or invalid",
            code="API_KEY_ERROR",
            recoverable=True,
            recovery_hint=f"Configure the {service} API key in the .env file.",
            details={"service": service}
        )


class JobTimeoutError(VideoAIError):
    """Provider call exceeded the configured deadline"""

    def __init__(self, job_id: str, timeout_seconds: float):
        super().__init__(
            message=f"Generation timed out after {timeout_seconds:g}s",
            code="JOB_TIMEOUT",
            recoverable=True,
            recovery_hint="Try a shorter duration or a lower resolution.",
            details={"job_id": job_id, "timeout_seconds": timeout_seconds}
        )


# ============================================================================
# Storage Errors
# ============================================================================

class PersistenceError(VideoAIError):
    """Error writing to the record store"""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(
            message=message,
            code="PERSISTENCE_ERROR",
            recoverable=False,
            recovery_hint="Check that the data directory is writable.",
            details={"record_id": record_id}
        )
