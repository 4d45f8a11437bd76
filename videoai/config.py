"""
VideoAI Configuration
Centralized settings management using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "VideoAI"
    debug: bool = False
    app_version: str = "1.0.0"

    # ==========================================================================
    # Google Gemini
    # ==========================================================================
    gemini_api_key: str = Field(default="", description="Google Gemini API Key")
    gemini_text_model: str = Field(default="gemini-2.0-flash", description="Model for prompts and plans")
    gemini_image_model: str = Field(default="imagen-3.0-generate-002", description="Model for thumbnails")

    # ==========================================================================
    # AWS S3
    # ==========================================================================
    aws_access_key_id: str = Field(default="", description="AWS Access Key ID")
    aws_secret_access_key: str = Field(default="", description="AWS Secret Key")
    aws_region: str = Field(default="us-east-1", description="AWS Region")
    s3_bucket_name: str = Field(default="", description="S3 Bucket Name")

    # ==========================================================================
    # Generation
    # ==========================================================================
    video_cdn_base_url: str = Field(
        default="https://storage.googleapis.com/videoai-generated",
        description="Base URL of generated video assets"
    )
    fallback_video_base_url: str = Field(
        default="https://example.com/videos",
        description="Base URL used when the provider returns no video"
    )
    fallback_thumbnail_base_url: str = Field(
        default="https://example.com/thumbnails",
        description="Base URL used when the provider returns no thumbnail"
    )
    generation_timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Per-stage provider deadline (unset = wait forever)"
    )
    max_concurrent_jobs: Optional[int] = Field(
        default=None, ge=1, description="Concurrently running generations (unset = unbounded)"
    )

    # ==========================================================================
    # Progress channel
    # ==========================================================================
    ws_max_queue_size: int = Field(default=500, ge=1, le=10000, description="Per-subscriber outbound queue")

    # ==========================================================================
    # Security
    # ==========================================================================
    api_key: str = Field(default="", description="Optional API key for /api and /ws routes")
    default_owner_id: str = Field(default="local-user", description="Owner used when no X-User-Id header is sent")
    cors_allowed_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:8000",
            "http://127.0.0.1:8000"
        ],
        description="Allowed CORS origins"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================
    output_dir: str = Field(default="output", description="Output directory for thumbnails")
    data_dir: str = Field(default="data", description="Persistent application data directory")

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
