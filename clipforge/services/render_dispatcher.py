"""Render Dispatcher - submits resolved jobs to the Remotion Lambda render function.

Submission is fire-and-forget: the function is asked to start a render and
call back the registered webhook when it finishes. Nothing here waits for the
render itself.
"""

import asyncio
import json
from threading import Lock
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from clipforge.core.config import Settings
from clipforge.core.errors import DispatchError
from clipforge.models.schemas import RenderJob
from clipforge.utils.error_handler import format_error_message


class RenderDispatcher:
    """Starts renders on the remote backend and reports progress on request."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the dispatcher.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._lambda_client = None
        self._client_lock = Lock()

    def _get_client(self):
        """Get or create the Lambda client; safe to call from worker threads."""
        with self._client_lock:
            if self._lambda_client is None:
                session = boto3.session.Session(region_name=self.settings.remotion_lambda_region)
                self._lambda_client = session.client("lambda")
            return self._lambda_client

    def build_webhook(self, video_id: str) -> dict[str, Any]:
        """Webhook registration carrying the correlation id back to us."""
        return {
            "url": self.settings.remotion_webhook_url,
            "secret": self.settings.remotion_webhook_secret,
            "customData": {"video_id": video_id},
        }

    def build_start_payload(self, job: RenderJob) -> dict[str, Any]:
        """
        Render-start payload for ``job``.

        Carries every field the render function's start handler reads, with the
        same defaults the official Remotion clients send.
        """
        return {
            "type": "start",
            "version": self.settings.remotion_version,
            "serveUrl": self.settings.remotion_serve_url,
            "composition": self.settings.remotion_composition_id,
            "inputProps": {"type": "payload", "payload": json.dumps(job.input_props)},
            "codec": job.codec,
            "audioCodec": None,
            "crf": job.crf,
            "scale": job.scale,
            "imageFormat": job.image_format,
            "jpegQuality": self.settings.remotion_jpeg_quality,
            "pixelFormat": None,
            "proResProfile": None,
            "x264Preset": None,
            "colorSpace": None,
            "preferLossless": False,
            "audioBitrate": None,
            "videoBitrate": None,
            "encodingBufferSize": None,
            "encodingMaxRate": None,
            "forceHeight": None,
            "forceWidth": None,
            "everyNthFrame": 1,
            "numberOfGifLoops": 0,
            "frameRange": None,
            "muted": False,
            "envVariables": {},
            "chromiumOptions": {},
            "framesPerLambda": self.settings.remotion_frames_per_lambda,
            "concurrencyPerLambda": 1,
            "maxRetries": self.settings.remotion_max_retries,
            "timeoutInMilliseconds": self.settings.remotion_timeout_ms,
            "logLevel": self.settings.remotion_log_level,
            "offthreadVideoCacheSizeInBytes": None,
            "downloadBehavior": {"type": "play-in-browser"},
            "outName": job.out_name,
            "privacy": "public",
            "overwrite": False,
            "deleteAfter": None,
            "bucketName": None,
            "forcePathStyle": False,
            "rendererFunctionName": None,
            "metadata": None,
            "webhook": self.build_webhook(job.video_id),
        }

    async def dispatch(self, job: RenderJob) -> bool:
        """
        Submit ``job`` for rendering.

        Returns:
            True once the backend issued a render id, False if submission failed
        """
        try:
            result = await asyncio.to_thread(self._invoke, self.build_start_payload(job))
        except DispatchError as e:
            self.logger.error(format_error_message("Dispatching render", e, {"video_id": job.video_id}))
            return False

        render_id = result.get("renderId")
        if not render_id:
            self.logger.error(f"Render backend issued no render id for {job.video_id}: {result}")
            return False

        self.logger.info(
            f"Render started for {job.video_id}: render_id={render_id} bucket={result.get('bucketName')}"
        )
        return True

    async def get_progress(self, render_id: str, bucket_name: str) -> dict[str, Any]:
        """
        Query the progress of a previously started render.

        Raises:
            DispatchError: If the status call fails
        """
        payload = {
            "type": "status",
            "version": self.settings.remotion_version,
            "renderId": render_id,
            "bucketName": bucket_name,
            "logLevel": self.settings.remotion_log_level,
            "s3OutputProvider": None,
            "forcePathStyle": False,
        }
        return await asyncio.to_thread(self._invoke, payload)

    def _invoke(self, payload: dict[str, Any]) -> dict[str, Any]:
        function_name = self.settings.remotion_lambda_function_name
        if not function_name:
            raise DispatchError("REMOTION_LAMBDA_FUNCTION_NAME is not configured")
        if not payload.get("version"):
            raise DispatchError("REMOTION_VERSION is not configured; it must match the deployed render function")

        try:
            response = self._get_client().invoke(
                FunctionName=function_name,
                InvocationType="RequestResponse",
                Payload=json.dumps(payload).encode("utf-8"),
            )
            raw = response["Payload"].read()
            body = json.loads(raw) if raw else {}
        except (BotoCoreError, ClientError, KeyError, ValueError) as e:
            raise DispatchError(f"Render function call failed: {e}", original_error=e) from e

        function_error: Optional[str] = response.get("FunctionError")
        if function_error or (isinstance(body, dict) and body.get("type") == "error"):
            message = body.get("message") if isinstance(body, dict) else body
            raise DispatchError(f"Render function returned an error ({function_error or 'error'}): {message}")
        if not isinstance(body, dict):
            raise DispatchError(f"Unexpected render function response: {body!r}")

        return body
