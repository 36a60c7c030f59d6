"""Transcriber - word-level captions for narration audio via AssemblyAI."""

import asyncio
import time
from types import MappingProxyType
from typing import Any, Mapping, Optional

import requests
from pydantic import ValidationError

from clipforge.core.config import Settings
from clipforge.core.errors import TranscriptionError
from clipforge.models.schemas import Caption, CaptionSet

DEFAULT_SPEECH_MODEL = "nano"

# Languages served by the "best" tier; everything else falls back to DEFAULT_SPEECH_MODEL
LANGUAGE_TIERS: Mapping[str, str] = MappingProxyType({
    code: "best"
    for code in (
        "en", "en_au", "en_uk", "en_us", "es", "fr", "de", "it", "pt", "nl",
        "hi", "ja", "zh", "fi", "ko", "pl", "ru", "tr", "uk", "vi",
    )
})

TERMINAL_STATUSES = ("completed", "error")


def speech_model_for(language_code: str) -> str:
    """Transcription tier for a language code."""
    return LANGUAGE_TIERS.get(language_code, DEFAULT_SPEECH_MODEL)


def build_transcript_request(audio_url: str, language_code: Optional[str]) -> dict[str, Any]:
    """Request body for a new transcript; unknown language enables auto-detection."""
    body: dict[str, Any] = {"audio_url": audio_url}
    code = (language_code or "").strip()
    if code:
        body["language_code"] = code
        body["speech_model"] = speech_model_for(code)
    else:
        body["language_detection"] = True
    return body


class Transcriber:
    """Submits audio URLs for transcription and converts the words to captions."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the transcriber.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    @property
    def _headers(self) -> dict[str, str]:
        return {"authorization": self.settings.assemblyai_api_key or ""}

    async def transcribe(self, audio_url: str, language_code: Optional[str]) -> Optional[CaptionSet]:
        """
        Transcribe ``audio_url`` into word-level captions.

        Returns:
            Captions, or None when the backend reports no words

        Raises:
            TranscriptionError: If the backend fails, reports an error, or times out
        """
        if not self.settings.assemblyai_api_key:
            raise TranscriptionError("AssemblyAI API key not configured")

        body = build_transcript_request(audio_url, language_code)
        self.logger.info(f"Submitting transcription for {audio_url} ({body.get('speech_model', 'auto-detect')})")

        submitted = await asyncio.to_thread(self._request, "POST", "/v2/transcript", body)
        transcript_id = submitted.get("id")
        if not transcript_id:
            raise TranscriptionError(f"AssemblyAI did not return a transcript id: {submitted}")

        transcript = await self._wait_for_completion(transcript_id, submitted)
        return self._to_captions(transcript.get("words"))

    async def _wait_for_completion(self, transcript_id: str, transcript: dict[str, Any]) -> dict[str, Any]:
        deadline = time.monotonic() + self.settings.assemblyai_poll_timeout_seconds
        while transcript.get("status") not in TERMINAL_STATUSES:
            if time.monotonic() >= deadline:
                raise TranscriptionError(
                    f"Transcript {transcript_id} not finished after {self.settings.assemblyai_poll_timeout_seconds}s"
                )
            await asyncio.sleep(self.settings.assemblyai_poll_interval_seconds)
            transcript = await asyncio.to_thread(self._request, "GET", f"/v2/transcript/{transcript_id}")

        if transcript.get("status") == "error":
            raise TranscriptionError(f"Transcript {transcript_id} failed: {transcript.get('error')}")

        self.logger.info(f"Transcript {transcript_id} completed")
        return transcript

    def _request(self, method: str, path: str, body: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = f"{self.settings.assemblyai_base_url}{path}"
        try:
            response = requests.request(
                method,
                url,
                json=body,
                headers=self._headers,
                timeout=self.settings.http_timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise TranscriptionError(f"AssemblyAI request {method} {path} failed: {e}", original_error=e) from e

    def _to_captions(self, words: Optional[list[dict[str, Any]]]) -> Optional[CaptionSet]:
        if not words:
            return None

        captions = []
        for word in words:
            try:
                captions.append(Caption(text=word["text"], start=word["start"], end=word["end"]))
            except (KeyError, ValidationError) as e:
                self.logger.warning(f"Dropping malformed word timing {word}: {e}")

        return tuple(captions) or None
