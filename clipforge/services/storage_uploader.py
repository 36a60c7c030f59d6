"""Object store uploader - persists narration audio and rendered videos to S3."""

import asyncio
from threading import Lock
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from clipforge.core.config import Settings
from clipforge.core.errors import StorageConfigError, StorageUploadError
from clipforge.models.schemas import UploadKind
from clipforge.utils.io_utils import build_object_key


class StorageUploader:
    """Writes byte buffers to the configured bucket and returns public URLs."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the uploader.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._s3_client = None
        self._client_lock = Lock()

    @property
    def bucket_name(self) -> Optional[str]:
        return self.settings.aws_bucket_name

    def _get_client(self):
        """Get or create the S3 client; safe to call from concurrent upload threads."""
        with self._client_lock:
            if self._s3_client is None:
                session = boto3.session.Session(
                    aws_access_key_id=self.settings.aws_s3_access_key_id,
                    aws_secret_access_key=self.settings.aws_s3_secret_access_key,
                    region_name=self.settings.aws_s3_region,
                )
                self._s3_client = session.client("s3")
            return self._s3_client

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"

    async def upload(self, data: bytes, correlation_id: str, kind: UploadKind) -> str:
        """
        Store ``data`` under a fresh key and return its public URL.

        Every call creates a new object, even for the same correlation id.

        Args:
            data: Object body
            correlation_id: Job identifier used as key prefix
            kind: Audio (mp3) or video (mp4)

        Returns:
            Fully-qualified public URL

        Raises:
            StorageConfigError: If no bucket is configured
            StorageUploadError: If the write fails
        """
        if not self.bucket_name:
            raise StorageConfigError("AWS_BUCKET_NAME is not defined in environment variables.")

        kind = UploadKind(kind)
        key = build_object_key(correlation_id, kind.extension)
        self.logger.info(f"Uploading {kind.value} ({len(data)} bytes) to s3://{self.bucket_name}/{key}")

        await asyncio.to_thread(self._put_object, key, data, kind.content_type)

        file_url = self.public_url(key)
        self.logger.info(f"{kind.value.capitalize()} uploaded successfully: {file_url}")
        return file_url

    def _put_object(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._get_client().put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUploadError(f"Failed to upload {key} to S3: {e}", original_error=e) from e
