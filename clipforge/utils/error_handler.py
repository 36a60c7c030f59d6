"""Error Handler - consistent failure messages and the synthesized webhook error event."""

from typing import Any, Optional


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
) -> str:
    """
    Format a log-friendly error message.

    Args:
        operation: What operation was being performed (e.g., "Uploading narration")
        error: The exception that occurred
        context: Additional context (e.g., {"video_id": "v1", "scene_index": 2})

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    message = f"{operation} failed{context_str}: {error_type}: {error}"

    cause = getattr(error, "original_error", None) or error.__cause__
    if cause is not None and cause is not error:
        message += f" [caused by {type(cause).__name__}: {cause}]"

    return message


def build_error_notification(payload: dict[str, Any], error: Exception) -> dict[str, Any]:
    """
    Build the error event forwarded downstream when a completion cannot be processed.

    The shape mirrors the render backend's own error webhook so consumers handle
    both the same way.

    Args:
        payload: The completion payload that failed processing
        error: The exception raised while processing it

    Returns:
        Error notification dict
    """
    notification: dict[str, Any] = {
        "type": "error",
        "errors": [{"name": type(error).__name__, "message": str(error)}],
    }
    for key in ("renderId", "bucketName", "customData"):
        if key in payload:
            notification[key] = payload[key]
    return notification
