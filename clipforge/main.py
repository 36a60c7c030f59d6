"""
FastAPI entrypoint for the ClipForge render orchestration service.

* POST /generate-video resolves narration and triggers a remote render
* POST /webhook receives render completions and republishes the video
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clipforge.api.routes_video import router as video_router
from clipforge.core.config import settings
from clipforge.core.logging_config import get_logger, setup_logging

setup_logging(log_level=settings.log_level, log_file=settings.log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version} on port {settings.port}")
    if not settings.aws_bucket_name:
        logger.warning("AWS_BUCKET_NAME not set, uploads will fail")
    if not settings.remotion_lambda_function_name:
        logger.warning("REMOTION_LAMBDA_FUNCTION_NAME not set, renders cannot be dispatched")
    if not settings.remotion_version:
        logger.warning("REMOTION_VERSION not set, renders cannot be dispatched")
    if not settings.downstream_webhook_url:
        logger.warning("DOWNSTREAM_WEBHOOK_URL not set, completions will not be forwarded")
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Turns declarative video descriptions into narrated, captioned renders",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(video_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "clipforge.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
