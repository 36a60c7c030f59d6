"""Silence Trimmer - removes leading and trailing silence from narration audio."""

import asyncio
from typing import Any, Optional, Sequence

from pydub import AudioSegment
from pydub.silence import detect_silence

from clipforge.core.config import Settings
from clipforge.utils.error_handler import format_error_message
from clipforge.utils.io_utils import scratch_dir

NOISE_THRESHOLD_DBFS = -40.0
MIN_SILENCE_SECONDS = 0.1
TRAILING_TOLERANCE_SECONDS = 0.1


def compute_trim_range(
    silent_parts: Sequence[tuple[float, float]],
    duration_seconds: float,
) -> Optional[tuple[float, float]]:
    """
    Decide which part of the audio to keep.

    Args:
        silent_parts: Ordered ``(start, end)`` silent intervals in seconds
        duration_seconds: Total audio duration in seconds

    Returns:
        ``(trim_start, trim_end)`` in seconds, or None when the audio should be
        returned untouched (no silence, nothing at the edges, or a degenerate
        range).
    """
    if not silent_parts:
        return None

    trim_start = 0.0
    trim_end = duration_seconds

    first_start, first_end = silent_parts[0]
    if first_start == 0:
        trim_start = first_end

    last_start, last_end = silent_parts[-1]
    if last_end >= duration_seconds - TRAILING_TOLERANCE_SECONDS:
        trim_end = last_start

    if trim_start >= trim_end:
        return None
    if trim_start == 0.0 and trim_end == duration_seconds:
        return None

    return trim_start, trim_end


class SilenceTrimmer:
    """Trims edge silence from audio buffers; never fails its caller."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the trimmer.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    async def trim(self, audio_bytes: bytes) -> bytes:
        """
        Return ``audio_bytes`` with leading/trailing silence removed.

        Any failure is logged and the original bytes are returned.
        """
        try:
            return await asyncio.to_thread(self._trim_sync, audio_bytes)
        except Exception as e:
            self.logger.error(format_error_message("Trimming silence", e, {"bytes": len(audio_bytes)}))
            return audio_bytes

    def _trim_sync(self, audio_bytes: bytes) -> bytes:
        with scratch_dir(prefix="clipforge-trim-") as work_dir:
            source_path = work_dir / "input.mp3"
            source_path.write_bytes(audio_bytes)

            audio = AudioSegment.from_file(str(source_path))
            duration_seconds = len(audio) / 1000.0

            self.logger.debug("Analyzing silence...")
            silent_ranges_ms = detect_silence(
                audio,
                min_silence_len=int(MIN_SILENCE_SECONDS * 1000),
                silence_thresh=NOISE_THRESHOLD_DBFS,
            )
            silent_parts = [(start / 1000.0, end / 1000.0) for start, end in silent_ranges_ms]
            self.logger.debug(f"Silent parts detected: {silent_parts}")

            if not silent_parts:
                self.logger.debug("No silence detected, returning original audio")
                return audio_bytes

            trim_range = compute_trim_range(silent_parts, duration_seconds)
            if trim_range is None:
                self.logger.warning(
                    f"No usable trim range for {duration_seconds:.2f}s audio, returning original audio"
                )
                return audio_bytes

            trim_start, trim_end = trim_range
            self.logger.info(f"Trimming audio to {trim_start:.2f}s - {trim_end:.2f}s")

            trimmed = audio[int(trim_start * 1000):int(trim_end * 1000)]
            output_path = work_dir / "output.mp3"
            trimmed.export(str(output_path), format="mp3")
            return output_path.read_bytes()
