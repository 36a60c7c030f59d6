"""
Scene orchestrator: turns one video job request into a dispatched render.

Pipeline:
validate → narration (whole-video or per-scene: TTS → upload → transcribe) → RenderJob → RenderDispatcher
"""

from typing import Any, Optional

from clipforge.core.config import Settings
from clipforge.core.errors import InvalidJobRequestError
from clipforge.core.logging_config import get_logger
from clipforge.models.schemas import (
    CaptionSet,
    Clip,
    NarrationMode,
    OrchestrationResult,
    RenderJob,
    SynthesisParams,
    UploadKind,
    VideoJobRequest,
)
from clipforge.services.render_dispatcher import RenderDispatcher
from clipforge.services.storage_uploader import StorageUploader
from clipforge.services.transcriber import Transcriber
from clipforge.services.tts_client import TTSClient
from clipforge.utils.parallel_executor import ParallelExecutor

DEFAULT_CODEC = "h264"
DEFAULT_CRF = 18
DEFAULT_SCALE = 1
DEFAULT_IMAGE_FORMAT = "jpeg"


def _serialize_captions(captions: Optional[CaptionSet]) -> Optional[list[dict[str, Any]]]:
    if captions is None:
        return None
    return [caption.model_dump() for caption in captions]


def _with_default(value: Optional[bool], default: bool = True) -> bool:
    return default if value is None else value


class SceneOrchestrator:
    """Resolves narration for a request and hands the assembled job to the renderer."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        tts_client: Optional[TTSClient] = None,
        uploader: Optional[StorageUploader] = None,
        transcriber: Optional[Transcriber] = None,
        dispatcher: Optional[RenderDispatcher] = None,
        executor: Optional[ParallelExecutor] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Application settings
            logger: Logger instance
            tts_client: Speech synthesis adapter
            uploader: Object store uploader
            transcriber: Transcription adapter
            dispatcher: Render dispatcher
            executor: Fan-out executor for per-scene narration
        """
        self.settings = settings
        self.logger = logger
        self.tts_client = tts_client or TTSClient(settings, logger)
        self.uploader = uploader or StorageUploader(settings, logger)
        self.transcriber = transcriber or Transcriber(settings, logger)
        self.dispatcher = dispatcher or RenderDispatcher(settings, logger)
        self.executor = executor or ParallelExecutor(settings, logger)

    async def orchestrate(self, request: VideoJobRequest) -> OrchestrationResult:
        """
        Resolve narration for every scene and dispatch the render.

        Raises:
            InvalidJobRequestError: Before any external call, if required fields are missing
            PipelineError: If any per-scene pipeline fails (nothing is dispatched)
            SynthesisError, StorageConfigError, StorageUploadError, TranscriptionError:
                If whole-video narration fails (nothing is dispatched)
        """
        missing = request.missing_required_fields()
        if missing:
            raise InvalidJobRequestError(f"Missing required fields: {', '.join(missing)}")

        log = get_logger(__name__, video_id=request.id)
        mode = request.narration_mode
        log.info(f"Starting audio & captions generation ({mode.value}, {len(request.clips)} scenes)")

        if mode is NarrationMode.WHOLE_VIDEO:
            input_props = await self._resolve_whole_video(request)
            narrated = 1
        else:
            input_props = await self._resolve_per_scene(request)
            narrated = sum(1 for clip in request.clips if clip.audio_text)

        log.info("Audio & captions generated successfully")

        job = self.build_render_job(request, input_props)
        accepted = await self.dispatcher.dispatch(job)
        if accepted:
            log.info("Video triggered successfully")
        else:
            log.warning("Render dispatch was not accepted")

        return OrchestrationResult(accepted=accepted, video_id=request.id, mode=mode, narrated_scenes=narrated)

    async def narrate(self, request: VideoJobRequest, text: str) -> tuple[str, Optional[CaptionSet]]:
        """Synthesize → upload → transcribe one narration; strictly sequential."""
        audio_bytes = await self.tts_client.synthesize(SynthesisParams.from_request(request, text))
        audio_url = await self.uploader.upload(audio_bytes, request.id, UploadKind.AUDIO)
        captions = await self.transcriber.transcribe(audio_url, request.lang_code)
        self.logger.debug(f"Generated {len(captions) if captions else 0} captions for {audio_url}")
        return audio_url, captions

    async def _resolve_whole_video(self, request: VideoJobRequest) -> dict[str, Any]:
        audio_url, captions = await self.narrate(request, request.audio_text)

        scenes = []
        for clip in request.clips:
            scene = self._base_scene(clip)
            scene.update(
                tts_enabled=_with_default(clip.tts_enabled),
                random_sequence=_with_default(clip.random_sequence),
                audio_url=None,
                captions=None,
            )
            scenes.append(scene)

        input_props = self._base_props(request)
        input_props.update(audio_url=audio_url, captions=_serialize_captions(captions), scenes=scenes)
        return input_props

    async def _resolve_per_scene(self, request: VideoJobRequest) -> dict[str, Any]:
        def make_task(clip: Clip):
            async def task() -> dict[str, Any]:
                return await self._resolve_scene(request, clip)
            return task

        scenes = await self.executor.run_all(
            [make_task(clip) for clip in request.clips],
            task_names=[f"scene_{i + 1}" for i in range(len(request.clips))],
        )

        input_props = self._base_props(request)
        input_props["scenes"] = scenes
        return input_props

    async def _resolve_scene(self, request: VideoJobRequest, clip: Clip) -> dict[str, Any]:
        scene = self._base_scene(clip)
        if not clip.audio_text:
            return scene

        audio_url, captions = await self.narrate(request, clip.audio_text)
        scene.update(
            audio_url=audio_url,
            captions=_serialize_captions(captions) or [],
            tts_enabled=_with_default(clip.tts_enabled),
            random_sequence=_with_default(clip.random_sequence),
        )
        return scene

    @staticmethod
    def _base_scene(clip: Clip) -> dict[str, Any]:
        # Narration text is consumed here and never forwarded to the renderer
        return clip.model_dump(mode="json", exclude_unset=True, exclude={"audio_text"})

    @staticmethod
    def _base_props(request: VideoJobRequest) -> dict[str, Any]:
        return request.model_dump(mode="json", exclude_unset=True, exclude={"clips", "audio_text"})

    def build_render_job(self, request: VideoJobRequest, input_props: dict[str, Any]) -> RenderJob:
        """Attach output-encoding parameters (with defaults) to the resolved props."""
        return RenderJob(
            video_id=request.id,
            input_props=input_props,
            codec=request.codec or DEFAULT_CODEC,
            crf=request.crf if request.crf is not None else DEFAULT_CRF,
            scale=request.scale or DEFAULT_SCALE,
            image_format=request.image_format or DEFAULT_IMAGE_FORMAT,
        )
