"""Tests for Artifact Processor."""

import pytest
import requests
from unittest.mock import AsyncMock, MagicMock, patch

from clipforge.core.errors import ArtifactProcessingError
from clipforge.services.artifact_processor import ArtifactProcessor

VIDEO_URL = "https://remotion-b.s3.amazonaws.com/renders/r1/v1.mp4"


@pytest.fixture
def processor(settings, logger):
    """Create ArtifactProcessor instance for testing."""
    return ArtifactProcessor(settings, logger)


def test_build_ffmpeg_command(processor, tmp_path):
    """Test that ffmpeg stream-copies and replaces the metadata tags."""
    source = tmp_path / "input.mp4"
    output = tmp_path / "output.mp4"

    cmd = processor.build_ffmpeg_command(source, output)

    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-i") + 1] == str(source)
    assert cmd[cmd.index("-c") + 1] == "copy"
    assert "encoder=Adobe Premiere Pro 23.0 (Windows)" in cmd
    assert "software=Adobe Premiere Pro" in cmd
    assert "comment=Edited with CapCut" in cmd
    assert cmd[-1] == str(output)


@pytest.mark.asyncio
async def test_prepare_returns_rewritten_bytes_and_cleans_up(processor):
    """Test the download → rewrite flow and scratch cleanup."""
    seen_dirs = []

    def fake_download(url, destination):
        seen_dirs.append(destination.parent)
        destination.write_bytes(b"rendered")

    async def fake_rewrite(source, output):
        output.write_bytes(source.read_bytes() + b"+tagged")

    with patch.object(processor, "_download", side_effect=fake_download), \
            patch.object(processor, "rewrite_metadata", side_effect=fake_rewrite):
        result = await processor.prepare(VIDEO_URL)

    assert result == b"rendered+tagged"
    assert seen_dirs and not seen_dirs[0].exists()


@pytest.mark.asyncio
@patch("clipforge.services.artifact_processor.requests.get")
async def test_prepare_download_failure(mock_get, processor):
    """Test that download errors raise ArtifactProcessingError."""
    mock_get.side_effect = requests.exceptions.ConnectionError("unreachable")

    with pytest.raises(ArtifactProcessingError, match="Failed to download"):
        await processor.prepare(VIDEO_URL)


@pytest.mark.asyncio
async def test_rewrite_metadata_failure(processor, tmp_path):
    """Test that a nonzero ffmpeg exit raises ArtifactProcessingError."""
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(b"", b"moov atom not found"))
    process.returncode = 1

    with patch(
        "clipforge.services.artifact_processor.asyncio.create_subprocess_exec",
        AsyncMock(return_value=process),
    ):
        with pytest.raises(ArtifactProcessingError, match="moov atom not found"):
            await processor.rewrite_metadata(tmp_path / "in.mp4", tmp_path / "out.mp4")


@pytest.mark.asyncio
async def test_rewrite_metadata_missing_binary(processor, tmp_path):
    """Test that a missing ffmpeg binary raises ArtifactProcessingError."""
    with patch(
        "clipforge.services.artifact_processor.asyncio.create_subprocess_exec",
        AsyncMock(side_effect=FileNotFoundError("ffmpeg")),
    ):
        with pytest.raises(ArtifactProcessingError, match="Could not start ffmpeg"):
            await processor.rewrite_metadata(tmp_path / "in.mp4", tmp_path / "out.mp4")
