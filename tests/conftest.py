"""Shared pytest fixtures and configuration."""

import pytest

from clipforge.core.config import Settings
from clipforge.core.logging_config import get_logger


@pytest.fixture
def settings():
    """Create test settings instance with every backend configured."""
    return Settings(
        elevenlabs_api_key="test-elevenlabs-key",
        openai_api_key="test-openai-key",
        assemblyai_api_key="test-assemblyai-key",
        assemblyai_poll_interval_seconds=0,
        assemblyai_poll_timeout_seconds=5,
        aws_bucket_name="test-bucket",
        aws_s3_access_key_id="test-access-key",
        aws_s3_secret_access_key="test-secret-key",
        remotion_lambda_function_name="remotion-render-test",
        remotion_serve_url="https://example.com/sites/test/index.html",
        remotion_version="4.0.250",
        remotion_webhook_url="https://clipforge.test/webhook",
        remotion_webhook_secret="test-webhook-secret",
        downstream_webhook_url="https://consumer.test/video-ready",
        enable_rate_limiting=False,
    )


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)
