"""
FastAPI application for image-to-video generation.

Provides an HTTP API for video generation with WebSocket progress updates.
"""

import logging
import shutil
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stillmotion.api import routes, websocket
from stillmotion.config import get_settings
from stillmotion.logging_config import setup_logging
from stillmotion.services.credentials import EnvironmentCredentialProvider

# Configure logging before anything else
settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup info and checks local prerequisites.
    """
    logger.info("Starting Stillmotion API")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Models: {settings.initial_model} / {settings.extension_model}")
    logger.info(f"Artifact directory: {settings.artifact_dir}")

    if EnvironmentCredentialProvider().get_credential() is None:
        logger.warning("No API key in environment; requests must send X-Api-Key")
    if shutil.which("ffmpeg") is None:
        logger.warning("ffmpeg not found; video uploads will be rejected")

    yield

    logger.info("Shutting down Stillmotion API")


app = FastAPI(
    title="Stillmotion API",
    description="API for turning a still image and a prompt into a video",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router)
app.include_router(websocket.router)


@app.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        Basic health status
    """
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stillmotion.main:app",
        host="0.0.0.0",
        port=8801,
        reload=True,
    )
