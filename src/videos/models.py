"""Data models for uploaded videos, transcripts, and storage listings.

Metadata documents keep their camelCase wire keys (``uploadedAt``,
``completedAt``, ``transcription``) so that documents written by earlier
deployments still load. Attribute names are snake_case and both spellings are
accepted on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VideoStatus(str, Enum):
    """Lifecycle status of an uploaded video."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class TranscriptStatus(str, Enum):
    """Status reported by the transcription service."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Word(BaseModel):
    """A single recognised word. Offsets are in milliseconds."""

    text: str
    start: int
    end: int
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class Utterance(BaseModel):
    """A contiguous stretch of speech attributed to one speaker."""

    speaker: str
    text: str
    start: int
    end: int
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    words: list[Word] = []


class Transcript(BaseModel):
    """Transcription result attached to a video."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str = ""
    status: TranscriptStatus = TranscriptStatus.COMPLETED
    words: list[Word] = []
    utterances: list[Utterance] = []
    completed_at: datetime | None = Field(default=None, alias="completedAt")

    @field_validator("completed_at")
    @classmethod
    def completed_at_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class VideoRecord(BaseModel):
    """Unified view of one uploaded video plus its optional transcript."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    url: str
    size: int = Field(default=0, ge=0)
    uploaded_at: datetime = Field(alias="uploadedAt")
    status: VideoStatus
    transcript: Transcript | None = Field(default=None, alias="transcription")
    error: str | None = None

    @field_validator("uploaded_at")
    @classmethod
    def uploaded_at_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)  # type: ignore[return-value]

    @property
    def has_transcript_text(self) -> bool:
        return bool(self.transcript is not None and self.transcript.text)

    def to_document(self) -> str:
        """Serialise to the JSON document stored under ``metadata/{id}.json``."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class StorageObject(BaseModel):
    """Descriptor for one object returned by a storage listing."""

    name: str
    path: str
    size: int = 0
    created_at: datetime
    content_type: str | None = None
    url: str | None = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)  # type: ignore[return-value]


class UploadProgress(BaseModel):
    """Progress event emitted while an upload moves through the pipeline."""

    file_name: str
    video_id: str | None = None
    progress: int = Field(default=0, ge=0, le=100)
    status: VideoStatus
    error: str | None = None
    video: VideoRecord | None = None
