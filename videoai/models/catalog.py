"""
Catalog Data Models
Templates and effects offered to the generation form
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
import uuid


class Template(BaseModel):
    """Reusable starting point for a generation"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: Optional[str] = None
    category: str = Field(description="social, marketing, cinematic or animation")
    thumbnail_url: Optional[str] = None
    preview_video_url: Optional[str] = None
    default_prompt: Optional[str] = None
    default_style: Optional[str] = None
    default_effects: List[str] = Field(default_factory=list)
    default_camera_controls: Optional[Dict[str, Any]] = None
    popularity_score: int = 0


class Effect(BaseModel):
    """Named effect that can be applied to a generation"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    display_name: str
    description: Optional[str] = None
    category: str = Field(description="trending, transformation, social or professional")
    thumbnail_url: Optional[str] = None
    preview_video_url: Optional[str] = None
    is_trending: bool = False
    usage_count: int = 0


SAMPLE_TEMPLATES: List[Dict[str, Any]] = [
    {
        "name": "Social Media Viral",
        "description": "Template optimized for social networks with viral effects",
        "category": "social",
        "default_prompt": "Create a dynamic and engaging video for social media",
        "default_style": "cinematic",
        "default_effects": ["ai-hug"],
        "default_camera_controls": {"movement": "pan", "speed": "normal"},
        "popularity_score": 95,
    },
    {
        "name": "Cinematic Trailer",
        "description": "Cinematic template for professional trailers",
        "category": "cinematic",
        "default_prompt": "Create an epic cinematic trailer",
        "default_style": "cinematic",
        "default_effects": [],
        "default_camera_controls": {"movement": "orbit", "speed": "slow"},
        "popularity_score": 88,
    },
    {
        "name": "Anime Style",
        "description": "Turn your ideas into anime",
        "category": "animation",
        "default_prompt": "Create an anime style animation",
        "default_style": "anime",
        "default_effects": [],
        "default_camera_controls": {"movement": "static", "speed": "normal"},
        "popularity_score": 75,
    },
]

SAMPLE_EFFECTS: List[Dict[str, Any]] = [
    {"name": "ai-hug", "display_name": "AI Hug", "description": "Create moving hugs between people",
     "category": "trending", "is_trending": True, "usage_count": 10_000_000},
    {"name": "ai-kiss", "display_name": "AI Kiss", "description": "Generate realistic romantic moments",
     "category": "trending", "is_trending": True, "usage_count": 8_000_000},
    {"name": "venom-effect", "display_name": "Venom Effect", "description": "Venom style transformation",
     "category": "transformation", "is_trending": True, "usage_count": 1_000_000_000},
    {"name": "super-hero", "display_name": "Super Hero", "description": "Become a super hero",
     "category": "transformation", "is_trending": True, "usage_count": 5_000_000},
    {"name": "body-morph", "display_name": "Body Morph", "description": "Smooth body transformations",
     "category": "transformation", "is_trending": True, "usage_count": 7_000_000},
    {"name": "squish-it", "display_name": "Squish It", "description": "Playful squish effect",
     "category": "social", "is_trending": True, "usage_count": 3_000_000},
]
