"""Artifact processor - downloads a rendered video and rewrites its container metadata."""

import asyncio
from pathlib import Path
from typing import Any

import requests

from clipforge.core.config import Settings
from clipforge.core.errors import ArtifactProcessingError
from clipforge.utils.io_utils import scratch_dir

DOWNLOAD_CHUNK_SIZE = 1024 * 1024


class ArtifactProcessor:
    """Fetches rendered output and produces a re-tagged copy ready for re-upload."""

    def __init__(self, settings: Settings, logger: Any):
        self.settings = settings
        self.logger = logger

    async def prepare(self, video_url: str) -> bytes:
        """
        Download ``video_url`` and return it with rewritten metadata.

        All scratch files are removed before returning, on success or failure.

        Raises:
            ArtifactProcessingError: If the download or ffmpeg rewrite fails
        """
        with scratch_dir(prefix="clipforge-video-") as work_dir:
            source_path = work_dir / "input.mp4"
            output_path = work_dir / "output.mp4"

            await asyncio.to_thread(self._download, video_url, source_path)
            await self.rewrite_metadata(source_path, output_path)
            return output_path.read_bytes()

    def _download(self, url: str, destination: Path) -> None:
        self.logger.info(f"Downloading rendered video: {url}")
        try:
            with requests.get(url, stream=True, timeout=self.settings.http_timeout_seconds) as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
        except (requests.exceptions.RequestException, OSError) as e:
            raise ArtifactProcessingError(f"Failed to download {url}: {e}", original_error=e) from e

    def build_ffmpeg_command(self, source: Path, output: Path) -> list[str]:
        """Stream-copy ``source`` into ``output`` with replaced metadata tags."""
        return [
            self.settings.ffmpeg_binary,
            "-y",
            "-i", str(source),
            "-c", "copy",
            "-metadata", f"encoder={self.settings.output_encoder_tag}",
            "-metadata", f"software={self.settings.output_software_tag}",
            "-metadata", f"comment={self.settings.output_comment_tag}",
            "-brand", "mp42",
            str(output),
        ]

    async def rewrite_metadata(self, source: Path, output: Path) -> None:
        """Run ffmpeg to rewrite the container tags of ``source`` into ``output``."""
        cmd = self.build_ffmpeg_command(source, output)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ArtifactProcessingError(f"Could not start ffmpeg: {e}", original_error=e) from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            error_output = stderr.decode(errors="replace")[-2000:] if stderr else "Unknown error"
            raise ArtifactProcessingError(f"FFmpeg failed: {error_output}")

        self.logger.info(f"Metadata rewritten: {output}")
