"""Webhook Completion Handler - republishes rendered videos and notifies the downstream consumer.

Each callback is handled on its own. Correlation travels inside the payload
(``customData.video_id``) and no job table is kept, so duplicate deliveries of
the same completion each produce their own upload and forward.
"""

import asyncio
from typing import Any, Optional

import requests

from clipforge.core.config import Settings
from clipforge.core.logging_config import get_logger
from clipforge.models.schemas import UploadKind
from clipforge.services.artifact_processor import ArtifactProcessor
from clipforge.services.storage_uploader import StorageUploader
from clipforge.utils.error_handler import build_error_notification, format_error_message

ACKNOWLEDGEMENT = "Webhook received"


class WebhookHandler:
    """Handles render-completion callbacks without ever failing the caller."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        uploader: Optional[StorageUploader] = None,
        artifact_processor: Optional[ArtifactProcessor] = None,
    ):
        self.settings = settings
        self.logger = logger
        self.uploader = uploader or StorageUploader(settings, logger)
        self.artifact_processor = artifact_processor or ArtifactProcessor(settings, logger)

    async def handle_callback(self, payload: dict[str, Any]) -> str:
        """
        Process one completion notification and return the acknowledgement text.

        Error notifications are forwarded unchanged. Success notifications are
        re-published and forwarded with the new ``outputUrl``. Failures while
        re-publishing are forwarded as a synthesized error notification.
        """
        if payload.get("type") == "error":
            self.logger.warning(f"Render backend reported an error: {payload}")
            await self.forward(payload)
            return ACKNOWLEDGEMENT

        video_id = self._video_id(payload)
        log = get_logger(__name__, video_id=video_id)
        try:
            new_url = await self._republish(payload["outputUrl"], video_id)
            log.info(f"Rendered video re-published: {new_url}")
            await self.forward({**payload, "outputUrl": new_url})
        except Exception as e:
            log.error(format_error_message("Processing render completion", e, {"video_id": video_id}))
            await self.forward(build_error_notification(payload, e))

        return ACKNOWLEDGEMENT

    def _video_id(self, payload: dict[str, Any]) -> str:
        custom_data = payload.get("customData") or {}
        video_id = custom_data.get("video_id") if isinstance(custom_data, dict) else None
        return video_id or self.settings.placeholder_video_id

    async def _republish(self, output_url: str, video_id: str) -> str:
        video_bytes = await self.artifact_processor.prepare(output_url)
        return await self.uploader.upload(video_bytes, video_id, UploadKind.VIDEO)

    async def forward(self, notification: dict[str, Any]) -> bool:
        """
        POST ``notification`` to the downstream consumer.

        Returns:
            True if the consumer accepted it; failures are logged, never raised
        """
        url = self.settings.downstream_webhook_url
        if not url:
            self.logger.warning("DOWNSTREAM_WEBHOOK_URL not configured, dropping notification")
            return False

        try:
            response = await asyncio.to_thread(
                requests.post, url, json=notification, timeout=self.settings.http_timeout_seconds
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.logger.error(format_error_message("Forwarding notification", e, {"url": url}))
            return False

        self.logger.info(f"Notification forwarded to {url} ({notification.get('type', 'success')})")
        return True
