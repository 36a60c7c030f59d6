"""Pydantic models and schemas for the render orchestration pipeline."""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Enums
# ============================================================================


class UploadKind(str, Enum):
    """Kind of object written to storage; decides extension and content type."""

    AUDIO = "audio"
    VIDEO = "video"

    @property
    def extension(self) -> str:
        return "mp3" if self is UploadKind.AUDIO else "mp4"

    @property
    def content_type(self) -> str:
        return "audio/mpeg" if self is UploadKind.AUDIO else "video/mp4"


class NarrationMode(str, Enum):
    """How narration is produced for a job."""

    WHOLE_VIDEO = "whole_video"
    PER_SCENE = "per_scene"


# ============================================================================
# Caption Models
# ============================================================================


class Caption(BaseModel):
    """
    A single word-level timing entry.

    ``start`` and ``end`` are milliseconds, the unit the transcription backend
    reports and the render composition consumes.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Spoken word")
    start: float = Field(..., ge=0, description="Word start in milliseconds")
    end: float = Field(..., ge=0, description="Word end in milliseconds")

    @model_validator(mode="after")
    def _end_after_start(self) -> "Caption":
        if self.end <= self.start:
            raise ValueError("End time must be greater than start time")
        return self

    @property
    def start_seconds(self) -> float:
        return self.start / 1000.0

    @property
    def end_seconds(self) -> float:
        return self.end / 1000.0


CaptionSet = tuple[Caption, ...]


# ============================================================================
# Inbound Job Models
# ============================================================================


class Clip(BaseModel):
    """One visual segment of the requested video. Unknown fields are preserved."""

    model_config = ConfigDict(extra="allow")

    media_url: str = Field(..., description="Image or video URL shown in this scene")
    media_type: Optional[Literal["image", "video"]] = Field(default=None, description="Kind of media")
    duration: Optional[float] = Field(default=None, description="Scene duration in seconds")
    video_volume: Optional[float] = Field(default=None, description="Volume of the clip's own audio (0-1)")
    sound_effect_url: Optional[str] = Field(default=None, description="Optional sound effect")
    sound_effect_volume: Optional[float] = Field(default=None, description="Sound effect volume (0-1)")
    tts_enabled: Optional[bool] = Field(default=None, description="Whether narration plays over the scene")
    random_sequence: Optional[bool] = Field(default=None, description="Whether the scene may be reordered")
    subtitle_style: Optional[int] = Field(default=None, description="Per-scene subtitle preset")
    title: Optional[str] = Field(default=None, description="Scene title")
    emoji: Optional[str] = Field(default=None, description="Scene emoji")
    audio_text: Optional[str] = Field(default=None, description="Narration text for this scene")
    seconds: Optional[float] = Field(default=None, description="Audio seconds when no narration is generated")
    zoom: Optional[float] = Field(default=None, description="Zoom factor")
    audio_url: Optional[str] = Field(default=None, description="Resolved narration URL")
    captions: Optional[list[Caption]] = Field(default=None, description="Resolved word timings")


class VideoJobRequest(BaseModel):
    """
    Inbound description of a video to render.

    ``id``, ``clips`` and ``elevenlabs_voice_id`` are optional at parse time so
    that missing values can be reported with the service's own message rather
    than a schema error. Styling fields are opaque and forwarded verbatim,
    as is any field this model does not know about.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, description="Correlation identifier")
    lang_code: Optional[str] = Field(default=None, description="ISO 639-1 language code")

    # Voice tuning
    elevenlabs_voice_id: Optional[str] = Field(default=None, description="Voice used for narration")
    elevenlabs_stability: Optional[float] = Field(default=None, description="Voice stability")
    elevenlabs_similarity: Optional[float] = Field(default=None, description="Voice similarity boost")
    elevenlabs_speed: Optional[float] = Field(default=None, description="Speech speed")
    elevenlabs_style: Optional[float] = Field(default=None, description="Style exaggeration")
    elevenlabs_use_speaker_boost: Optional[bool] = Field(default=None, description="Speaker boost")
    elevenlabs_model_id: Optional[str] = Field(default=None, description="Synthesis model")

    # Audio and music
    audio_volume: Optional[float] = Field(default=None, description="Narration volume (0-1)")
    music_url: Optional[str] = Field(default=None, description="Background music URL")
    music_volume: Optional[float] = Field(default=None, description="Background music volume (0-1)")

    # Whole-video narration
    audio_text: Optional[str] = Field(default=None, description="Narration for the entire video")
    audio_url: Optional[str] = Field(default=None, description="Resolved whole-video narration URL")
    captions: Optional[list[Caption]] = Field(default=None, description="Whole-video word timings")

    clips: Optional[list[Clip]] = Field(default=None, description="Scenes in playback order")

    # Output encoding
    scale: Optional[float] = Field(default=None, description="Output scale factor (default 1)")
    fps: Optional[int] = Field(default=None, description="Output frames per second")
    crf: Optional[int] = Field(default=None, description="Constant rate factor (default 18)")
    image_format: Optional[Literal["jpeg", "png"]] = Field(default=None, description="Frame format")
    codec: Optional[str] = Field(default=None, description="Output codec (default h264)")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        # Numeric ids are carried as text
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def missing_required_fields(self) -> list[str]:
        """Names of required fields that are absent or empty."""
        missing = []
        if not self.id:
            missing.append("id")
        if not self.clips:
            missing.append("clips")
        if not self.elevenlabs_voice_id:
            missing.append("elevenlabs_voice_id")
        return missing

    @property
    def narration_mode(self) -> NarrationMode:
        return NarrationMode.WHOLE_VIDEO if self.audio_text else NarrationMode.PER_SCENE


# ============================================================================
# Collaborator Models
# ============================================================================


class SynthesisParams(BaseModel):
    """Everything a synthesis backend needs to voice one piece of text."""

    model_config = ConfigDict(protected_namespaces=())

    voice_id: str
    text: str
    language_code: Optional[str] = None
    stability: Optional[float] = None
    similarity: Optional[float] = None
    speed: float = 1.0
    style: float = 0.0
    speaker_boost: bool = False
    model_id: Optional[str] = None

    @classmethod
    def from_request(cls, request: VideoJobRequest, text: str) -> "SynthesisParams":
        return cls(
            voice_id=request.elevenlabs_voice_id or "",
            text=text,
            language_code=request.lang_code,
            stability=request.elevenlabs_stability,
            similarity=request.elevenlabs_similarity,
            speed=request.elevenlabs_speed if request.elevenlabs_speed is not None else 1.0,
            style=request.elevenlabs_style if request.elevenlabs_style is not None else 0.0,
            speaker_boost=bool(request.elevenlabs_use_speaker_boost),
            model_id=request.elevenlabs_model_id,
        )


class RenderJob(BaseModel):
    """Fully resolved payload handed to the rendering backend."""

    video_id: str = Field(..., description="Correlation id echoed back through the webhook")
    input_props: dict[str, Any] = Field(..., description="Resolved request forwarded to the composition")
    codec: str = Field(default="h264")
    crf: int = Field(default=18)
    scale: float = Field(default=1)
    image_format: Literal["jpeg", "png"] = Field(default="jpeg")

    @property
    def out_name(self) -> str:
        return f"{self.video_id}.mp4"

    @property
    def scenes(self) -> list[dict[str, Any]]:
        return self.input_props.get("scenes", [])


# ============================================================================
# API Request/Response Models
# ============================================================================


class OrchestrationResult(BaseModel):
    """Outcome of one orchestration run."""

    accepted: bool = Field(..., description="Whether the render backend accepted the job")
    video_id: str = Field(..., description="Correlation identifier")
    mode: NarrationMode = Field(..., description="Narration mode that was used")
    narrated_scenes: int = Field(default=0, description="Number of scenes that received narration")


class MessageResponse(BaseModel):
    """Plain message body returned by every JSON endpoint."""

    message: str
