"""Utility functions for ClipForge."""

from clipforge.utils.error_handler import build_error_notification, format_error_message
from clipforge.utils.io_utils import build_object_key, epoch_millis, scratch_dir

__all__ = [
    "build_error_notification",
    "format_error_message",
    "build_object_key",
    "epoch_millis",
    "scratch_dir",
]
