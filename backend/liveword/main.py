"""
LiveWord Relay - Main Application

This is the entry point for the FastAPI application.
It handles:
- The WebSocket gateway relaying browser audio to streaming STT
- The translate REST endpoint for non-realtime clients
- Static serving of the browser UI
- Startup / shutdown of metrics and provider resources
"""
from contextlib import asynccontextmanager
import logging
import os
from datetime import datetime, UTC

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from liveword.api import router as api_router
from liveword.api.deps import get_broadcaster, get_registry
from liveword.api.websocket import router as ws_router
from liveword.config.settings import settings
from liveword.services.connection import connection_manager
from liveword.services.gcp import shutdown_gcp_executor
from liveword.services.metrics import start_metrics_server

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # === STARTUP ===
    logger.info("🚀 Starting LiveWord relay...")

    if settings.METRICS_ENABLED:
        start_metrics_server(settings.METRICS_PORT)

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🛑 Shutting down...")
    await connection_manager.close_all()
    if get_broadcaster.cache_info().currsize:
        await get_broadcaster().shutdown()
    shutdown_gcp_executor()


app = FastAPI(
    title="LiveWord Relay",
    description="Live speech transcription with broadcast translation and speech synthesis",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include REST API routes
app.include_router(api_router, prefix="/api")

# Include WebSocket routes
app.include_router(ws_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    status = {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "active_sessions": connection_manager.get_active_session_count(),
        "translation_listeners": len(get_registry()),
    }
    # Providers are built on the first connection; do not build them here
    if get_broadcaster.cache_info().currsize:
        status["tts_cache"] = get_broadcaster().cache_stats()
    return status


# Browser UI; mounted last so API and WebSocket routes match first
if os.path.isdir(settings.STATIC_DIR):
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
else:
    logger.debug(f"Static directory {settings.STATIC_DIR!r} not found, UI not served")
