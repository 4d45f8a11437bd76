"""
Catalog Router
Read access to templates and effects.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_store
from ..models.catalog import Effect, Template
from ..services.video_store import VideoStore

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/templates", response_model=List[Template])
async def list_templates(
    category: Optional[str] = None,
    store: VideoStore = Depends(get_store),
):
    """List templates by popularity, optionally for one category."""
    return await store.list_templates(category)


@router.get("/templates/{template_id}", response_model=Template)
async def get_template(template_id: str, store: VideoStore = Depends(get_store)):
    template = await store.get_template(template_id)
    if not template:
        raise HTTPException(404, "Template not found")
    return template


@router.get("/effects", response_model=List[Effect])
async def list_effects(
    category: Optional[str] = None,
    trending: bool = False,
    store: VideoStore = Depends(get_store),
):
    """List effects by usage; trending=true returns trending effects only."""
    return await store.list_effects(category=category, trending=trending)


@router.get("/effects/{effect_id}", response_model=Effect)
async def get_effect(effect_id: str, store: VideoStore = Depends(get_store)):
    effect = await store.get_effect(effect_id)
    if not effect:
        raise HTTPException(404, "Effect not found")
    return effect
