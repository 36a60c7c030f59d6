"""TTS (Text-to-Speech) client selecting between ElevenLabs and OpenAI by language."""

import asyncio
from typing import Any, Optional

import requests
from openai import OpenAI

from clipforge.core.config import Settings
from clipforge.core.errors import SynthesisError
from clipforge.models.schemas import SynthesisParams
from clipforge.services.silence_trimmer import SilenceTrimmer
from clipforge.utils.rate_limiter import get_limiter

# Languages voiced by the secondary (OpenAI) backend
SECONDARY_BACKEND_LANGUAGES = frozenset({"he"})

ELEVENLABS_OUTPUT_FORMAT = "mp3_44100_128"


class TTSClient:
    """Produces trimmed narration audio for a piece of text."""

    def __init__(self, settings: Settings, logger: Any, trimmer: Optional[SilenceTrimmer] = None):
        """
        Initialize TTS client.

        Args:
            settings: Application settings
            logger: Logger instance
            trimmer: Silence trimmer applied to every result
        """
        self.settings = settings
        self.logger = logger
        self.trimmer = trimmer or SilenceTrimmer(settings, logger)
        self._openai_client = None

    def select_provider(self, language_code: Optional[str]) -> str:
        """Return "openai" for languages the primary backend does not voice, else "elevenlabs"."""
        if language_code in SECONDARY_BACKEND_LANGUAGES:
            return "openai"
        return "elevenlabs"

    async def synthesize(self, params: SynthesisParams) -> bytes:
        """
        Generate narration audio and strip edge silence.

        Args:
            params: Voice, text and tuning parameters

        Returns:
            MP3 bytes (trimmed when possible, untrimmed otherwise)

        Raises:
            SynthesisError: If the synthesis backend call fails
        """
        provider = self.select_provider(params.language_code)
        self.logger.info(f"Generating speech using {provider} provider for {len(params.text)} characters...")

        if provider == "openai":
            audio_bytes = await asyncio.to_thread(self._generate_openai, params)
        else:
            audio_bytes = await asyncio.to_thread(self._generate_elevenlabs, params)

        self.logger.info(f"Speech generated: {len(audio_bytes)} bytes")
        return await self.trimmer.trim(audio_bytes)

    def _throttle(self, provider: str, max_calls: int) -> None:
        if getattr(self.settings, "enable_rate_limiting", True):
            get_limiter(provider, max_calls=max_calls).wait_if_needed("text_to_speech")

    def _generate_elevenlabs(self, params: SynthesisParams) -> bytes:
        """Generate speech using the ElevenLabs REST API."""
        if not self.settings.elevenlabs_api_key:
            raise SynthesisError("ElevenLabs API key not configured")

        url = f"{self.settings.elevenlabs_api_url}/v1/text-to-speech/{params.voice_id}"
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }

        voice_settings = {
            "stability": params.stability,
            "similarity_boost": params.similarity,
            "speed": params.speed,
            "use_speaker_boost": params.speaker_boost,
            "style": params.style,
        }
        data = {
            "text": params.text,
            "model_id": params.model_id or self.settings.elevenlabs_default_model_id,
            "voice_settings": {k: v for k, v in voice_settings.items() if v is not None},
        }

        self._throttle("elevenlabs", self.settings.elevenlabs_rate_limit)
        try:
            response = requests.post(
                url,
                params={"output_format": ELEVENLABS_OUTPUT_FORMAT},
                json=data,
                headers=headers,
                timeout=self.settings.http_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise SynthesisError(f"Network error calling ElevenLabs API: {e}", original_error=e) from e

        if response.status_code != 200:
            raise SynthesisError(
                f"ElevenLabs API returned status {response.status_code}: {response.text[:500]}"
            )
        if not response.content:
            raise SynthesisError("ElevenLabs API returned empty audio")

        return response.content

    def _get_openai_client(self) -> OpenAI:
        """Get or create OpenAI client."""
        if self._openai_client is None:
            if not self.settings.openai_api_key:
                raise SynthesisError("OpenAI API key not configured")
            self._openai_client = OpenAI(api_key=self.settings.openai_api_key)
        return self._openai_client

    def _generate_openai(self, params: SynthesisParams) -> bytes:
        """Generate speech using OpenAI with the fixed voice persona and tone."""
        client = self._get_openai_client()

        self._throttle("openai", self.settings.openai_rate_limit)
        try:
            response = client.audio.speech.create(
                model=self.settings.openai_tts_model,
                voice=self.settings.openai_tts_voice,
                input=params.text,
                instructions=self.settings.openai_tts_instructions,
            )
            audio_bytes = response.content
        except Exception as e:
            raise SynthesisError(f"OpenAI TTS API error: {e}", original_error=e) from e

        if not audio_bytes:
            raise SynthesisError("OpenAI TTS API returned empty audio")
        return audio_bytes
