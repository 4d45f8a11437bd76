"""Routers package initialization"""
from .videos import router as videos_router
from .catalog import router as catalog_router
from .settings import router as settings_router
from .websocket import router as websocket_router

__all__ = ["videos_router", "catalog_router", "settings_router", "websocket_router"]
