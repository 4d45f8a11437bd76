"""
Generation Provider
Uses Google Gemini to enhance prompts, plan videos and render thumbnails.
Falls back to deterministic placeholder output when no API key is configured.
"""

import asyncio
import hashlib
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..config import get_settings
from ..utils.exceptions import APIKeyError, GenerationError
from ..utils.logger import get_logger
from .s3_uploader import S3Uploader

logger = get_logger()


TEXT_TO_VIDEO_SYSTEM_PROMPT = """You are an expert video generation AI. Given a text prompt, describe how the video should be created, including:
- Scene composition and camera angles
- Lighting and color grading
- Motion and dynamics
- Visual effects and transitions

Respond in JSON with: {
  "video_description": "detailed description",
  "scenes": ["scene1", "scene2"],
  "camera_movements": ["movement1"],
  "visual_effects": ["effect1"],
  "estimated_duration": number
}"""

IMAGE_TO_VIDEO_SYSTEM_PROMPT = """You are an expert at animating still images into videos. Given an image URL and animation instructions, describe how to animate the image including:
- Motion vectors and object movements
- Lighting changes and effects
- Camera path and depth
- Temporal coherence strategies

Respond in JSON with: {
  "animation_plan": "detailed plan",
  "key_frames": [{"frame": number, "description": "text"}],
  "motion_vectors": ["vector1"],
  "effects": ["effect1"],
  "estimated_duration": number
}"""

ENHANCE_SYSTEM_PROMPT = (
    "You are an expert at writing prompts for AI video generation. Enhance the given prompt "
    "to be more detailed and effective, focusing on visual elements, camera work, lighting, "
    "and composition. Keep it concise but descriptive. Reply with the prompt only."
)


@dataclass
class GenerationResult:
    """Output of a text or image generation call"""
    video_url: Optional[str]
    description: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GenerationParams:
    """Parameters shared by text and image generation"""
    prompt: str
    duration: int = 5
    resolution: str = "1080p"
    style: Optional[str] = None


class GenerationProvider:
    """Video generation backed by Gemini"""

    def __init__(self, uploader: Optional[S3Uploader] = None):
        self.settings = get_settings()
        self.uploader = uploader or S3Uploader()
        self._client = None

    @property
    def configured(self) -> bool:
        return bool(self.settings.gemini_api_key)

    def _ensure_client(self):
        """Lazy load the Gemini client"""
        if self._client is not None:
            return

        if not self.configured:
            raise APIKeyError("Gemini")

        try:
            from google import genai
            self._client = genai.Client(api_key=self.settings.gemini_api_key)
            logger.info("Gemini client initialized")
        except ImportError:
            logger.error("google-genai not installed")
            raise

    def _video_url(self, seed: str) -> str:
        digest = hashlib.sha1(seed.encode("utf-8")).hexdigest()[:16]
        return f"{self.settings.video_cdn_base_url}/video-{digest}.mp4"

    async def _generate_json(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        self._ensure_client()

        loop = asyncio.get_event_loop()
        response = await loop.run_in_executor(
            None,
            lambda: self._client.models.generate_content(
                model=self.settings.gemini_text_model,
                contents=user_prompt,
                config={
                    'system_instruction': system_prompt,
                    'response_mime_type': 'application/json',
                }
            )
        )

        if not response or not getattr(response, 'text', None):
            return {}
        return json.loads(response.text)

    async def enhance_prompt(self, prompt: str, style: Optional[str] = None) -> str:
        """
        Rewrite a prompt for better generation results

        Returns the original prompt when the provider is unconfigured or fails.
        """
        if not self.configured:
            return prompt

        try:
            self._ensure_client()
            loop = asyncio.get_event_loop()
            response = await loop.run_in_executor(
                None,
                lambda: self._client.models.generate_content(
                    model=self.settings.gemini_text_model,
                    contents=f'Enhance this video generation prompt for a {style or "cinematic"} style: "{prompt}"',
                    config={'system_instruction': ENHANCE_SYSTEM_PROMPT}
                )
            )
            enhanced = (getattr(response, 'text', None) or "").strip()
            return enhanced or prompt
        except Exception as e:
            logger.error(f"Error enhancing prompt: {e}")
            return prompt

    async def generate_from_text(self, params: GenerationParams) -> GenerationResult:
        """Plan and render a video from a text prompt"""
        style = params.style or "cinematic"
        seed = f"text|{params.prompt}|{params.duration}|{params.resolution}|{style}"

        if not self.configured:
            logger.warning("No Gemini API key found, using mock generation")
            return GenerationResult(
                video_url=self._video_url(seed),
                description=f"Generated {style} video: {params.prompt}",
                metadata={
                    "mock_generation": True,
                    "params": {
                        "prompt": params.prompt,
                        "duration": params.duration,
                        "resolution": params.resolution,
                        "style": style,
                    },
                    "scenes": ["Scene 1: Opening shot", "Scene 2: Main action", "Scene 3: Closing"],
                    "camera_movements": [f"Camera {params.resolution} quality"],
                    "visual_effects": [f"Style: {style}"],
                },
            )

        try:
            result = await self._generate_json(
                TEXT_TO_VIDEO_SYSTEM_PROMPT,
                f"Generate a {params.duration}-second {style} video in {params.resolution} "
                f"resolution based on this prompt: {params.prompt}",
            )
        except Exception as e:
            logger.error(f"Error generating video from text: {e}")
            raise GenerationError(f"Failed to generate video: {e}", kind="text-to-video") from e

        return GenerationResult(
            video_url=self._video_url(seed),
            description=result.get("video_description") or params.prompt,
            metadata=result,
        )

    async def generate_from_image(self, image_url: str, params: GenerationParams) -> GenerationResult:
        """Plan and render a video animating a source image"""
        style = params.style or "realistic"
        seed = f"image|{image_url}|{params.prompt}|{params.duration}|{params.resolution}|{style}"

        if not self.configured:
            logger.warning("No Gemini API key found, using mock generation")
            return GenerationResult(
                video_url=self._video_url(seed),
                description=f"Animate image with: {params.prompt}",
                metadata={
                    "mock_generation": True,
                    "params": {
                        "image_url": image_url,
                        "prompt": params.prompt,
                        "duration": params.duration,
                        "resolution": params.resolution,
                        "style": style,
                    },
                    "key_frames": [
                        {"frame": 0, "description": "Start"},
                        {"frame": params.duration, "description": "End"},
                    ],
                    "motion_vectors": ["Forward motion"],
                    "effects": [f"Style: {style}"],
                },
            )

        try:
            result = await self._generate_json(
                IMAGE_TO_VIDEO_SYSTEM_PROMPT,
                f"Animate this image ({image_url}) with the following instructions: {params.prompt}. "
                f"Duration: {params.duration} seconds, Style: {style}, Resolution: {params.resolution}",
            )
        except Exception as e:
            logger.error(f"Error generating video from image: {e}")
            raise GenerationError(f"Failed to generate video: {e}", kind="image-to-video") from e

        return GenerationResult(
            video_url=self._video_url(seed),
            description=result.get("animation_plan") or params.prompt,
            metadata=result,
        )

    async def generate_thumbnail(self, prompt: str, asset_id: Optional[str] = None) -> Optional[str]:
        """
        Render a still frame for the prompt

        Returns None when the provider is unconfigured or produces nothing;
        the caller substitutes a placeholder.
        """
        if not self.configured:
            return None

        try:
            self._ensure_client()
            loop = asyncio.get_event_loop()
            response = await loop.run_in_executor(
                None,
                lambda: self._client.models.generate_images(
                    model=self.settings.gemini_image_model,
                    prompt=f"Create a cinematic still frame for: {prompt}",
                    config={'number_of_images': 1}
                )
            )
        except Exception as e:
            logger.error(f"Error generating thumbnail: {e}")
            return None

        images = getattr(response, 'generated_images', None) or []
        if not images or not images[0].image or not images[0].image.image_bytes:
            return None

        key = f"thumbnails/{asset_id or uuid.uuid4().hex}.png"
        try:
            return await self.uploader.store_bytes(images[0].image.image_bytes, key)
        except Exception as e:
            logger.error(f"Error storing thumbnail: {e}")
            return None
