"""Tests for the HTTP surface."""

import re

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from clipforge.core.errors import DispatchError, PipelineError
from clipforge.main import app
from clipforge.models.schemas import NarrationMode, OrchestrationResult


@pytest.fixture
def client():
    """HTTP client for the application."""
    return TestClient(app)


@pytest.fixture
def services():
    """Service stand-ins returned by get_services."""
    orchestrator = MagicMock()
    orchestrator.orchestrate = AsyncMock(
        return_value=OrchestrationResult(accepted=True, video_id="v1", mode=NarrationMode.PER_SCENE)
    )
    webhook_handler = MagicMock()
    webhook_handler.handle_callback = AsyncMock(return_value="Webhook received")
    dispatcher = MagicMock()
    dispatcher.get_progress = AsyncMock(return_value={"overallProgress": 0.5, "done": False})

    mocked = {"orchestrator": orchestrator, "webhook_handler": webhook_handler, "dispatcher": dispatcher}
    with patch("clipforge.api.routes_video.get_services", return_value=mocked):
        yield mocked


@pytest.fixture
def valid_body():
    return {
        "id": "v1",
        "elevenlabs_voice_id": "voice-123",
        "clips": [{"media_url": "https://cdn.test/1.jpg", "audio_text": "Hello world"}],
    }


def test_root(client):
    """Test liveness check."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "All Ok!"}


def test_health(client):
    """Test health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"id": "v1", "elevenlabs_voice_id": "voice-123"},
        {"id": "v1", "elevenlabs_voice_id": "voice-123", "clips": []},
        {"clips": [{"media_url": "https://cdn.test/1.jpg"}], "elevenlabs_voice_id": "voice-123"},
    ],
)
def test_generate_video_missing_fields(client, services, body):
    """Test that missing required fields return 400 without orchestrating."""
    response = client.post("/generate-video", json=body)

    assert response.status_code == 400
    assert response.json() == {"message": "Missing required fields in request body."}
    services["orchestrator"].orchestrate.assert_not_awaited()


def test_generate_video_malformed_json(client, services):
    """Test that an unparseable body returns 400."""
    response = client.post(
        "/generate-video", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid request body."}


def test_generate_video_non_object_body(client, services):
    """Test that a JSON array body returns 400."""
    response = client.post("/generate-video", json=[1, 2, 3])

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid request body."}


def test_generate_video_schema_violation(client, services, valid_body):
    """Test that a body failing schema validation returns 400."""
    valid_body["clips"][0]["media_type"] = "gif"

    response = client.post("/generate-video", json=valid_body)

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid request body."}
    services["orchestrator"].orchestrate.assert_not_awaited()


def test_generate_video_triggered(client, services, valid_body):
    """Test the accepted path."""
    response = client.post("/generate-video", json=valid_body)

    assert response.status_code == 200
    assert response.json() == {"message": "Video Triggered Successfully"}
    request = services["orchestrator"].orchestrate.call_args.args[0]
    assert request.id == "v1"
    assert request.clips[0].audio_text == "Hello world"


def test_generate_video_numeric_id(client, services):
    """Test that a numeric id is accepted like any other correlation id."""
    body = {"id": 123, "clips": [{"media_url": "https://x/a.mp4"}], "elevenlabs_voice_id": "abc"}

    response = client.post("/generate-video", json=body)

    assert response.status_code == 200
    assert response.json() == {"message": "Video Triggered Successfully"}
    assert services["orchestrator"].orchestrate.call_args.args[0].id == "123"


def test_generate_video_dispatch_rejected(client, services, valid_body):
    """Test that a rejected dispatch still answers 200 with a retry message."""
    services["orchestrator"].orchestrate.return_value = OrchestrationResult(
        accepted=False, video_id="v1", mode=NarrationMode.PER_SCENE
    )

    response = client.post("/generate-video", json=valid_body)

    assert response.status_code == 200
    assert response.json() == {"message": "There is some error generation video, try again later..."}


def test_generate_video_pipeline_failure(client, services, valid_body):
    """Test that narration failures answer 500."""
    services["orchestrator"].orchestrate.side_effect = PipelineError("scene_1 failed", scene_index=0)

    response = client.post("/generate-video", json=valid_body)

    assert response.status_code == 500
    assert response.json() == {"message": "Internal Server Error"}


def test_webhook_acknowledged(client, services):
    """Test that completion callbacks are handed off and acknowledged in plain text."""
    payload = {"type": "success", "outputUrl": "https://x/v1.mp4", "customData": {"video_id": "v1"}}

    response = client.post("/webhook", json=payload)

    assert response.status_code == 200
    assert response.text == "Webhook received"
    services["webhook_handler"].handle_callback.assert_awaited_once_with(payload)


def test_webhook_handler_crash_still_acknowledged(client, services):
    """Test that the webhook never answers with an error status."""
    services["webhook_handler"].handle_callback.side_effect = RuntimeError("unexpected")

    response = client.post("/webhook", json={"type": "success"})

    assert response.status_code == 200
    assert response.text == "Webhook received"


def test_webhook_non_json_acknowledged(client, services):
    """Test that a non-JSON callback is acknowledged and ignored."""
    response = client.post("/webhook", content=b"ping", headers={"Content-Type": "text/plain"})

    assert response.status_code == 200
    assert response.text == "Webhook received"
    services["webhook_handler"].handle_callback.assert_not_awaited()


def test_webhook_dev(client):
    """Test the diagnostic webhook."""
    response = client.post("/webhook-dev", json={"hello": "world"})

    assert response.status_code == 200
    assert response.text == "Webhook received"


def test_render_progress(client, services):
    """Test render progress lookup."""
    response = client.get("/renders/r1/progress", params={"bucket_name": "remotion-b"})

    assert response.status_code == 200
    assert response.json() == {"overallProgress": 0.5, "done": False}
    services["dispatcher"].get_progress.assert_awaited_once_with("r1", "remotion-b")


def test_render_progress_failure(client, services):
    """Test that backend failures answer 502."""
    services["dispatcher"].get_progress.side_effect = DispatchError("no such render")

    response = client.get("/renders/r1/progress", params={"bucket_name": "remotion-b"})

    assert response.status_code == 502


# ============================================================================
# End-to-end scenarios through real services
# ============================================================================


@pytest.fixture
def wired(settings, logger):
    """Real orchestrator and webhook handler; only the network edges are mocked."""
    from clipforge.pipelines.scene_orchestrator import SceneOrchestrator
    from clipforge.services.storage_uploader import StorageUploader
    from clipforge.services.webhook_handler import WebhookHandler
    from clipforge.models.schemas import Caption

    tts_client = MagicMock()
    tts_client.synthesize = AsyncMock(return_value=b"mp3-bytes")
    transcriber = MagicMock()
    transcriber.transcribe = AsyncMock(return_value=(Caption(text="Hi", start=0, end=300),))
    dispatcher = MagicMock()
    dispatcher.dispatch = AsyncMock(return_value=True)
    artifact_processor = MagicMock()
    artifact_processor.prepare = AsyncMock(return_value=b"tagged-video")

    with patch("clipforge.services.storage_uploader.boto3.session.Session") as mock_session:
        uploader = StorageUploader(settings, logger)
        mocked = {
            "orchestrator": SceneOrchestrator(
                settings,
                logger,
                tts_client=tts_client,
                uploader=uploader,
                transcriber=transcriber,
                dispatcher=dispatcher,
            ),
            "webhook_handler": WebhookHandler(
                settings, logger, uploader=uploader, artifact_processor=artifact_processor
            ),
            "dispatcher": dispatcher,
        }
        with patch("clipforge.api.routes_video.get_services", return_value=mocked):
            yield {
                "tts_client": tts_client,
                "transcriber": transcriber,
                "dispatcher": dispatcher,
                "artifact_processor": artifact_processor,
                "s3": mock_session.return_value.client.return_value,
            }


def test_generate_video_end_to_end(client, wired):
    """Test one narrated scene from request to dispatch."""
    body = {
        "id": "v1",
        "clips": [{"media_url": "https://x/a.mp4", "audio_text": "Hi"}],
        "elevenlabs_voice_id": "abc",
    }

    response = client.post("/generate-video", json=body)

    assert response.status_code == 200
    assert response.json() == {"message": "Video Triggered Successfully"}

    wired["tts_client"].synthesize.assert_awaited_once()
    assert wired["tts_client"].synthesize.call_args.args[0].text == "Hi"

    wired["s3"].put_object.assert_called_once()
    key = wired["s3"].put_object.call_args.kwargs["Key"]
    assert re.fullmatch(r"v1_\d+\.mp3", key)
    audio_url = f"https://test-bucket.s3.amazonaws.com/{key}"

    wired["transcriber"].transcribe.assert_awaited_once_with(audio_url, None)
    wired["dispatcher"].dispatch.assert_awaited_once()
    job = wired["dispatcher"].dispatch.call_args.args[0]
    assert job.scenes[0]["audio_url"] == audio_url


def test_whole_video_mode_skips_scene_synthesis(client, wired):
    """Test that top-level narration wins over per-scene narration text."""
    body = {
        "id": "v1",
        "audio_text": "Whole story",
        "clips": [
            {"media_url": "https://x/a.mp4", "audio_text": "Scene one"},
            {"media_url": "https://x/b.mp4", "audio_text": "Scene two"},
        ],
        "elevenlabs_voice_id": "abc",
    }

    response = client.post("/generate-video", json=body)

    assert response.status_code == 200
    wired["tts_client"].synthesize.assert_awaited_once()
    assert wired["tts_client"].synthesize.call_args.args[0].text == "Whole story"


@patch("clipforge.services.webhook_handler.requests.post")
def test_webhook_error_passthrough(mock_post, client, wired):
    """Test that a backend error event is forwarded verbatim and nothing is uploaded."""
    response = client.post("/webhook", json={"type": "error", "detail": "x"})

    assert response.status_code == 200
    assert response.text == "Webhook received"
    mock_post.assert_called_once()
    assert mock_post.call_args.kwargs["json"] == {"type": "error", "detail": "x"}
    wired["s3"].put_object.assert_not_called()


@patch("clipforge.services.webhook_handler.requests.post")
def test_webhook_success_republishes(mock_post, client, wired):
    """Test that a completion is re-uploaded once and forwarded with a new URL."""
    payload = {"outputUrl": "https://r/out.mp4", "customData": {"video_id": "v1"}, "renderId": "r1"}

    response = client.post("/webhook", json=payload)

    assert response.status_code == 200
    wired["s3"].put_object.assert_called_once()
    assert wired["s3"].put_object.call_args.kwargs["ContentType"] == "video/mp4"

    mock_post.assert_called_once()
    forwarded = mock_post.call_args.kwargs["json"]
    assert forwarded["outputUrl"] != "https://r/out.mp4"
    assert re.fullmatch(r"https://test-bucket\.s3\.amazonaws\.com/v1_\d+\.mp4", forwarded["outputUrl"])
    assert forwarded["customData"] == {"video_id": "v1"}
    assert forwarded["renderId"] == "r1"
