"""Exception taxonomy for the render orchestration pipeline."""

from typing import Optional


class ClipForgeError(Exception):
    """Base class for every error raised by ClipForge services."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class InvalidJobRequestError(ClipForgeError):
    """Raised before any external call when a job request lacks required fields."""


class SynthesisError(ClipForgeError):
    """Raised when a speech synthesis backend call fails."""


class TranscriptionError(ClipForgeError):
    """Raised when the transcription backend fails or times out."""


class StorageConfigError(ClipForgeError):
    """Raised when object storage is not configured."""


class StorageUploadError(ClipForgeError):
    """Raised when an object cannot be written to storage."""


class DispatchError(ClipForgeError):
    """Raised when the rendering backend rejects or fails a submission."""


class ArtifactProcessingError(ClipForgeError):
    """Raised when a rendered artifact cannot be downloaded or rewritten."""


class PipelineError(ClipForgeError):
    """Raised when any scene pipeline fails during the concurrent fan-out."""

    def __init__(self, message: str, scene_index: Optional[int] = None, original_error: Optional[Exception] = None):
        super().__init__(message, original_error=original_error)
        self.scene_index = scene_index
