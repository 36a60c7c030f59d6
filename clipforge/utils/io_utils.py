"""I/O utility functions for object naming and scratch files."""

import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional


def epoch_millis() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def build_object_key(correlation_id: str, extension: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build a storage key of the form ``{correlation_id}_{epoch_millis}.{ext}``.

    Args:
        correlation_id: Job identifier the object belongs to
        extension: File extension without the dot
        timestamp_ms: Override for the timestamp (defaults to now)

    Returns:
        Storage key, unique per call for practical purposes
    """
    stamp = timestamp_ms if timestamp_ms is not None else epoch_millis()
    return f"{correlation_id}_{stamp}.{extension}"


@contextmanager
def scratch_dir(prefix: str = "clipforge-") -> Iterator[Path]:
    """
    Yield a private temporary directory that is removed on every exit path.

    Args:
        prefix: Directory name prefix
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
