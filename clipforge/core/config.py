"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    See .env.example for a template. Values are read once at startup and
    treated as read-only afterwards.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="ClipForge", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional path of a rotating log file")
    port: int = Field(default=8080, description="HTTP listen port")
    http_timeout_seconds: float = Field(
        default=60.0, description="Timeout applied to outbound HTTP calls (synthesis, downloads, forwards)"
    )

    # ========================================================================
    # TTS (Text-to-Speech) Settings
    # ========================================================================
    elevenlabs_api_key: Optional[str] = Field(default=None, description="ElevenLabs API key")
    elevenlabs_api_url: str = Field(
        default="https://api.elevenlabs.io", description="ElevenLabs API base URL"
    )
    elevenlabs_default_model_id: str = Field(
        default="eleven_multilingual_v2", description="ElevenLabs model used when the request names none"
    )
    openai_api_key: Optional[str] = Field(
        default=None, description="OpenAI API key (secondary synthesis backend, used for Hebrew)"
    )
    openai_tts_model: str = Field(default="gpt-4o-mini-tts", description="OpenAI speech model")
    openai_tts_voice: str = Field(default="coral", description="OpenAI speech voice persona")
    openai_tts_instructions: str = Field(
        default="Speak in a cheerful and positive tone.",
        description="Tone instructions sent to the OpenAI speech model",
    )

    # ========================================================================
    # Transcription Settings
    # ========================================================================
    assemblyai_api_key: Optional[str] = Field(default=None, description="AssemblyAI API key")
    assemblyai_base_url: str = Field(
        default="https://api.assemblyai.com", description="AssemblyAI API base URL"
    )
    assemblyai_poll_interval_seconds: float = Field(
        default=3.0, description="Delay between transcript status polls"
    )
    assemblyai_poll_timeout_seconds: float = Field(
        default=300.0, description="Give up on a transcript after this many seconds"
    )

    # ========================================================================
    # Object Storage Settings (S3)
    # ========================================================================
    aws_bucket_name: Optional[str] = Field(default=None, description="Destination bucket for audio and video")
    aws_s3_region: str = Field(default="us-east-1", description="Bucket region")
    aws_s3_access_key_id: Optional[str] = Field(default=None, description="S3 access key id")
    aws_s3_secret_access_key: Optional[str] = Field(default=None, description="S3 secret access key")

    # ========================================================================
    # Remote Rendering (Remotion Lambda)
    # ========================================================================
    remotion_lambda_region: str = Field(default="us-east-1", description="Region of the render function")
    remotion_lambda_function_name: str = Field(default="", description="Render Lambda function name")
    remotion_serve_url: str = Field(default="", description="Serve URL of the deployed Remotion site")
    remotion_composition_id: str = Field(default="MyCompostion", description="Composition to render")
    remotion_version: str = Field(
        default="",
        description="Exact Remotion version the deployed render function was built with (required, e.g. 4.0.250)",
    )
    remotion_jpeg_quality: int = Field(default=80, description="JPEG quality of rendered frames")
    remotion_max_retries: int = Field(default=1, description="Retries per failed render chunk")
    remotion_frames_per_lambda: Optional[int] = Field(
        default=None, description="Frames rendered per chunk (default: chosen by the render function)"
    )
    remotion_timeout_ms: int = Field(default=30000, description="Timeout for the composition to load, in milliseconds")
    remotion_log_level: str = Field(default="info", description="Render function log level (verbose, info, warn, error)")
    remotion_webhook_url: str = Field(default="", description="Completion webhook registered with each render")
    remotion_webhook_secret: Optional[str] = Field(
        default=None, description="Shared secret the render backend signs webhooks with"
    )

    # ========================================================================
    # Downstream Notification
    # ========================================================================
    downstream_webhook_url: Optional[str] = Field(
        default=None, description="Consumer that receives normalized completion notifications"
    )
    placeholder_video_id: str = Field(
        default="unknown_video", description="Correlation id used when a webhook carries no video_id"
    )

    # ========================================================================
    # Media Tooling
    # ========================================================================
    ffmpeg_binary: str = Field(default="ffmpeg", description="ffmpeg executable used for metadata rewriting")
    output_encoder_tag: str = Field(
        default="Adobe Premiere Pro 23.0 (Windows)", description="Encoder tag written into re-published videos"
    )
    output_software_tag: str = Field(
        default="Adobe Premiere Pro", description="Software tag written into re-published videos"
    )
    output_comment_tag: str = Field(
        default="Edited with CapCut", description="Comment tag written into re-published videos"
    )

    # ========================================================================
    # Rate Limiting Settings
    # ========================================================================
    enable_rate_limiting: bool = Field(
        default=True,
        description="Enable rate limiting for API calls to prevent hitting limits (default: true)",
    )
    openai_rate_limit: int = Field(
        default=60, description="OpenAI API calls per minute (default: 60)"
    )
    elevenlabs_rate_limit: int = Field(
        default=100, description="ElevenLabs API calls per minute (default: 100)"
    )

    # ========================================================================
    # Parallelism Settings
    # ========================================================================
    max_parallel_scenes: Optional[int] = Field(
        default=None,
        description="Maximum number of scene pipelines in flight per request (default: unbounded)",
    )


# Global settings instance
settings = Settings()
