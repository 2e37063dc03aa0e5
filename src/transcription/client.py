"""AssemblyAI transcription client.

The SDK submits the media URL and polls internally until the job finishes, so
``transcribe`` blocks for the whole round trip. There is no timeout and no
cancellation once a job is submitted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import assemblyai as aai  # type: ignore[import-untyped]

from src.config import settings
from src.videos.errors import TranscriptionError
from src.videos.models import Transcript, TranscriptStatus, Utterance, Word

logger = logging.getLogger(__name__)


def _to_word(raw: Any) -> Word:
    return Word(
        text=raw.text,
        start=int(raw.start),
        end=int(raw.end),
        confidence=float(raw.confidence or 0.0),
    )


def _to_transcript(raw: Any) -> Transcript:
    """Convert an SDK transcript object into our :class:`Transcript`."""
    status = TranscriptStatus(getattr(raw.status, "value", raw.status))
    return Transcript(
        id=str(raw.id),
        text=raw.text or "",
        status=status,
        words=[_to_word(w) for w in raw.words or []],
        utterances=[
            Utterance(
                speaker=str(u.speaker),
                text=u.text,
                start=int(u.start),
                end=int(u.end),
                confidence=float(u.confidence or 0.0),
                words=[_to_word(w) for w in u.words or []],
            )
            for u in raw.utterances or []
        ],
        completed_at=datetime.now(timezone.utc) if status is TranscriptStatus.COMPLETED else None,
    )


class TranscriptionClient:
    """Submits media URLs to AssemblyAI with speaker diarization."""

    def __init__(
        self,
        api_key: str,
        language_code: str = "en",
        speaker_labels: bool = True,
        speech_models: list[str] | tuple[str, ...] = (),
    ) -> None:
        self.language_code = language_code
        self.speaker_labels = speaker_labels
        self.speech_models = list(speech_models)
        aai.settings.api_key = api_key

    @classmethod
    def from_settings(cls) -> TranscriptionClient:
        return cls(
            settings.assemblyai_api_key,
            language_code=settings.transcription_language,
            speaker_labels=settings.speaker_labels,
            speech_models=settings.assemblyai_speech_models,
        )

    def _config(self) -> Any:
        options: dict[str, Any] = {
            "language_code": self.language_code,
            "speaker_labels": self.speaker_labels,
        }
        if self.speech_models:
            options["speech_models"] = self.speech_models
        return aai.TranscriptionConfig(**options)

    def transcribe(self, media_url: str) -> Transcript:
        """Transcribe a publicly reachable media URL.

        Raises:
            TranscriptionError: The service reported an error status, or the
                request failed (bad key, network, provider outage).
        """
        logger.info("Submitting %s for transcription", media_url)
        try:
            raw = aai.Transcriber().transcribe(media_url, config=self._config())
        except Exception as exc:
            raise TranscriptionError(f"Transcription service unavailable: {exc}") from exc

        if raw.status == aai.TranscriptStatus.error:
            raise TranscriptionError(raw.error or "Transcription failed")

        transcript = _to_transcript(raw)
        logger.info(
            "Transcript %s finished: %d words, %d utterances",
            transcript.id,
            len(transcript.words),
            len(transcript.utterances),
        )
        return transcript

    def get_transcript(self, transcript_id: str) -> Transcript:
        """Fetch the current state of a previously submitted job."""
        try:
            raw = aai.Transcript.get_by_id(transcript_id)
        except Exception as exc:
            raise TranscriptionError(f"Could not fetch transcript {transcript_id}: {exc}") from exc
        return _to_transcript(raw)
