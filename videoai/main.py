"""
VideoAI - AI Video Generation Platform
Main FastAPI Application Entry Point
"""

import asyncio
import logging
from pathlib import Path
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse

from .config import get_settings
from .utils.logger import setup_logger
from .utils.exceptions import VideoAIError
from .routers import videos_router, catalog_router, settings_router, websocket_router
from .services.generation_provider import GenerationProvider
from .services.job_orchestrator import JobOrchestrator
from .services.progress_broadcaster import ProgressBroadcaster
from .services.s3_uploader import S3Uploader
from .services.task_pool import JobTaskPool
from .services.video_store import VideoStore


# Set up logging
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    settings = get_settings()

    # Create required directories
    Path(settings.output_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)

    store = VideoStore(str(Path(settings.data_dir) / "videoai.db"))
    await store.initialize()

    broadcaster = ProgressBroadcaster(max_queue_size=settings.ws_max_queue_size)
    broadcaster.bind_loop(asyncio.get_running_loop())

    provider = GenerationProvider(uploader=S3Uploader())
    task_pool = JobTaskPool(max_concurrency=settings.max_concurrent_jobs)
    orchestrator = JobOrchestrator(store, provider, broadcaster, task_pool, settings)

    # Jobs cannot survive a restart
    await orchestrator.recover_interrupted()

    app.state.store = store
    app.state.broadcaster = broadcaster
    app.state.provider = provider
    app.state.task_pool = task_pool
    app.state.orchestrator = orchestrator

    logger.info("=" * 60)
    logger.info("VideoAI - AI Video Generation Platform")
    logger.info("=" * 60)
    logger.info(f"Output directory: {settings.output_dir}")
    logger.info(f"Data directory: {settings.data_dir}")
    logger.info(f"Max concurrent jobs: {settings.max_concurrent_jobs or 'unbounded'}")
    logger.info(f"Generation timeout: {settings.generation_timeout_seconds or 'none'}")

    # Check service configurations
    if settings.gemini_api_key:
        logger.info("[OK] Gemini AI configured")
    else:
        logger.warning("[!] Gemini API key not set (mock generation)")

    if settings.aws_access_key_id:
        logger.info("[OK] AWS S3 configured")
    else:
        logger.info("[-] AWS S3 not configured (thumbnails stored locally)")

    if settings.api_key:
        logger.info("[OK] API key authentication enabled")
    else:
        logger.warning("[!] API key authentication disabled")

    logger.info("=" * 60)
    logger.info("Server started successfully!")
    logger.info("Progress channel: ws://localhost:8000/ws/progress")
    logger.info("API Docs: http://localhost:8000/docs")
    logger.info("=" * 60)

    yield

    # Cleanup on shutdown
    await task_pool.stop()
    logger.info("Shutting down VideoAI...")


PUBLIC_PATHS = {
    "/",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/settings/health",
    "/favicon.ico",
}
PUBLIC_PREFIXES = ("/output",)


def _extract_api_key(request: Request) -> str:
    api_key = request.headers.get("x-api-key", "").strip()
    if api_key:
        return api_key

    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return ""


async def api_key_auth_middleware(request: Request, call_next):
    settings = get_settings()
    if not settings.api_key:
        return await call_next(request)

    path = request.url.path
    if path in PUBLIC_PATHS or any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES):
        return await call_next(request)

    provided_key = _extract_api_key(request)
    if provided_key != settings.api_key:
        return JSONResponse(
            status_code=401,
            content={"detail": "Unauthorized: invalid or missing API key"},
        )

    return await call_next(request)


# ============================================================================
# Global Exception Handlers
# ============================================================================

async def videoai_exception_handler(request: Request, exc: VideoAIError):
    """Handle all VideoAI custom exceptions"""
    logger.error(f"VideoAIError [{exc.code}]: {exc.message}")
    return JSONResponse(
        status_code=400 if exc.recoverable else 500,
        content=exc.to_dict()
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies"""
    logger.warning(f"Invalid request data: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "recoverable": True,
            "recovery_hint": "Check your input parameters and try again.",
            "details": jsonable_encoder(exc.errors()),
        }
    )


async def validation_exception_handler(request: Request, exc: ValueError):
    """Handle validation errors"""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": str(exc),
            "recoverable": True,
            "recovery_hint": "Check your input parameters and try again."
        }
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions"""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again.",
            "recoverable": True,
            "recovery_hint": "If this persists, check the server logs for details."
        }
    )


def create_app() -> FastAPI:
    """Build the FastAPI application"""
    settings = get_settings()
    setup_logger(level=logging.DEBUG if settings.debug else logging.INFO)

    app = FastAPI(
        title=settings.app_name,
        description="AI Video Generation Platform - Turn prompts and images into videos",
        version=settings.app_version,
        lifespan=lifespan
    )

    # CORS middleware
    cors_origins = settings.cors_allowed_origins or ["http://localhost:8000", "http://127.0.0.1:8000"]
    cors_allow_credentials = "*" not in cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(api_key_auth_middleware)

    app.add_exception_handler(VideoAIError, videoai_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ValueError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Include routers
    app.include_router(videos_router)
    app.include_router(catalog_router)
    app.include_router(settings_router)
    app.include_router(websocket_router)

    # Static file serving for locally stored thumbnails
    output_path = Path(settings.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    app.mount("/output", StaticFiles(directory=str(output_path)), name="output")

    @app.get("/")
    async def root():
        return {"message": "VideoAI API", "docs": "/docs"}

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy", "app": settings.app_name}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "videoai.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
