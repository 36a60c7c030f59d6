"""FastAPI routes for video generation and render-completion webhooks."""

from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from clipforge.core.config import Settings, settings
from clipforge.core.errors import DispatchError, InvalidJobRequestError
from clipforge.core.logging_config import get_logger
from clipforge.models.schemas import MessageResponse, VideoJobRequest
from clipforge.pipelines.scene_orchestrator import SceneOrchestrator
from clipforge.services.render_dispatcher import RenderDispatcher
from clipforge.services.webhook_handler import ACKNOWLEDGEMENT, WebhookHandler

router = APIRouter(tags=["video"])

REQUIRED_FIELDS = ("id", "clips", "elevenlabs_voice_id")

MISSING_FIELDS_MESSAGE = "Missing required fields in request body."
INVALID_BODY_MESSAGE = "Invalid request body."
TRIGGERED_MESSAGE = "Video Triggered Successfully"
DISPATCH_FAILED_MESSAGE = "There is some error generation video, try again later..."
INTERNAL_ERROR_MESSAGE = "Internal Server Error"


def get_services(settings: Settings, logger: Any) -> dict:
    """Get all service instances."""
    return {
        "orchestrator": SceneOrchestrator(settings, logger),
        "webhook_handler": WebhookHandler(settings, logger),
        "dispatcher": RenderDispatcher(settings, logger),
    }


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=MessageResponse(message=message).model_dump())


@router.get("/", response_model=MessageResponse)
async def root() -> MessageResponse:
    """Liveness check."""
    return MessageResponse(message="All Ok!")


@router.post("/generate-video", response_model=MessageResponse)
async def generate_video(request: Request) -> JSONResponse:
    """
    Resolve narration for every scene and trigger a remote render.

    Dispatch failure is reported with HTTP 200 and a "try again later" message;
    only unexpected failures produce 500.
    """
    logger = get_logger(__name__)

    try:
        body = await request.json()
    except ValueError:
        return _message(400, INVALID_BODY_MESSAGE)
    if not isinstance(body, dict):
        return _message(400, INVALID_BODY_MESSAGE)

    if any(not body.get(field) for field in REQUIRED_FIELDS):
        return _message(400, MISSING_FIELDS_MESSAGE)

    try:
        job_request = VideoJobRequest.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Rejected request body: {e.errors(include_url=False)}")
        return _message(400, INVALID_BODY_MESSAGE)

    logger = get_logger(__name__, video_id=job_request.id)
    try:
        services = get_services(settings, logger)
        result = await services["orchestrator"].orchestrate(job_request)
    except InvalidJobRequestError:
        return _message(400, MISSING_FIELDS_MESSAGE)
    except Exception as e:
        logger.exception(f"Error processing request: {e}")
        return _message(500, INTERNAL_ERROR_MESSAGE)

    if result.accepted:
        return _message(200, TRIGGERED_MESSAGE)
    return _message(200, DISPATCH_FAILED_MESSAGE)


@router.post("/webhook", response_class=PlainTextResponse)
async def webhook(request: Request) -> PlainTextResponse:
    """Render-completion callback. Always acknowledged with 200."""
    logger = get_logger(__name__)
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Webhook body is not JSON, ignoring")
        return PlainTextResponse(ACKNOWLEDGEMENT)

    logger.info(f"WEBHOOK: {payload}")
    if not isinstance(payload, dict):
        logger.warning(f"Webhook body is not an object, ignoring: {payload!r}")
        return PlainTextResponse(ACKNOWLEDGEMENT)

    try:
        services = get_services(settings, logger)
        ack = await services["webhook_handler"].handle_callback(payload)
    except Exception as e:
        logger.exception(f"Unhandled webhook failure: {e}")
        ack = ACKNOWLEDGEMENT
    return PlainTextResponse(ack)


@router.post("/webhook-dev", response_class=PlainTextResponse)
async def webhook_dev(request: Request) -> PlainTextResponse:
    """Diagnostic callback: log the body and acknowledge."""
    body = await request.body()
    get_logger(__name__).info(f"WEBHOOK-DEV: {body.decode(errors='replace')}")
    return PlainTextResponse(ACKNOWLEDGEMENT)


@router.get("/renders/{render_id}/progress")
async def render_progress(render_id: str, bucket_name: str = Query(...)) -> JSONResponse:
    """Progress of a render started earlier."""
    logger = get_logger(__name__, render_id=render_id)
    try:
        services = get_services(settings, logger)
        progress = await services["dispatcher"].get_progress(render_id, bucket_name)
    except DispatchError as e:
        logger.error(f"Progress lookup failed: {e}")
        return _message(502, "Could not fetch render progress.")
    return JSONResponse(status_code=200, content=progress)
