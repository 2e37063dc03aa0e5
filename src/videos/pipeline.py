"""Upload pipeline: validate -> stream to storage -> save metadata -> transcribe -> update metadata."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import IO

from src.storage.blob_index import BlobIndex
from src.storage.objects import ObjectStore, video_path
from src.transcription.client import TranscriptionClient
from src.videos.cache import VideoCache
from src.videos.errors import (
    MetadataSaveError,
    StorageError,
    TranscriptionError,
    UploadTransportError,
    UploadValidationError,
)
from src.videos.lifecycle import transition
from src.videos.models import UploadProgress, VideoRecord, VideoStatus

logger = logging.getLogger(__name__)

# 250 MiB upload ceiling; the bucket enforces the same limit
MAX_UPLOAD_BYTES = 250 * 1024 * 1024

ALLOWED_CONTENT_TYPES = frozenset({"video/mp4", "video/webm", "video/ogg", "video/quicktime"})

ProgressCallback = Callable[[UploadProgress], None]


def validate_upload(content_type: str | None, size: int) -> str | None:
    """Return a rejection reason, or ``None`` if the file may be uploaded."""
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        return "Please upload a valid video file (MP4, WebM, OGG, or MOV)"
    if size >= MAX_UPLOAD_BYTES:
        return f"File size must be less than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
    return None


def check_upload(content_type: str | None, size: int) -> None:
    """Raise :class:`UploadValidationError` if :func:`validate_upload` rejects the file."""
    reason = validate_upload(content_type, size)
    if reason is not None:
        raise UploadValidationError(
            reason,
            too_large=(content_type or "").lower() in ALLOWED_CONTENT_TYPES,
        )


def new_video_id() -> str:
    """Millisecond timestamp used as record id and blob filename prefix."""
    return str(int(time.time() * 1000))


class UploadPipeline:
    """Runs one upload through the video lifecycle.

    Exactly one metadata write happens on entry to ``processing`` and one on
    entry to ``completed``/``error``. Every step runs synchronously; callers
    on an event loop should run :meth:`run` in a worker thread.
    """

    def __init__(
        self,
        store: ObjectStore,
        cache: VideoCache,
        transcriber: TranscriptionClient,
        blob_index: BlobIndex | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.transcriber = transcriber
        self.blob_index = blob_index

    def run(
        self,
        stream: IO[bytes],
        filename: str,
        content_type: str,
        size: int,
        on_progress: ProgressCallback | None = None,
    ) -> VideoRecord:
        """Upload and transcribe one video, returning its final record.

        A transcription failure does not raise: the returned record has status
        ``error``.

        Raises:
            UploadValidationError: Bad content type or size; nothing was sent.
            UploadTransportError: The video bytes could not be stored.
            MetadataSaveError: The ``processing`` metadata write failed.
        """
        check_upload(content_type, size)

        def emit(record: VideoRecord, progress: int, final: bool = False) -> None:
            if on_progress is None:
                return
            on_progress(
                UploadProgress(
                    file_name=filename,
                    video_id=record.id,
                    progress=progress,
                    status=record.status,
                    error=record.error,
                    video=record if final else None,
                )
            )

        video_id = new_video_id()
        path = video_path(video_id, filename)
        record = self.cache.put(
            VideoRecord(
                id=video_id,
                name=filename,
                url="",
                size=size,
                uploaded_at=datetime.now(timezone.utc),
                status=VideoStatus.UPLOADING,
            )
        )
        emit(record, 0)

        last_percent = -1

        def on_chunk(sent: int, total: int) -> None:
            nonlocal last_percent
            percent = round(sent / total * 100) if total else 100
            if percent != last_percent:
                last_percent = percent
                emit(record, percent)

        try:
            url = self.store.upload_video(path, stream, size, content_type, on_chunk=on_chunk)
        except StorageError as exc:
            logger.error("Upload error for %s: %s", path, exc)
            self._fail(record, str(exc), emit)
            raise UploadTransportError(str(exc)) from exc

        if self.blob_index is not None:
            try:
                self.blob_index.register(path, video_id)
            except StorageError:
                logger.exception("Could not index %s; id will come from the filename", path)

        record = transition(record, VideoStatus.PROCESSING, url=url)
        try:
            self.store.save_metadata(record)
        except StorageError as exc:
            logger.error("Failed to save metadata for video %s: %s", video_id, exc)
            self._fail(record, "Failed to save video metadata", emit)
            raise MetadataSaveError(str(exc)) from exc
        self.cache.put(record)
        emit(record, 100)

        try:
            transcript = self.transcriber.transcribe(url)
        except TranscriptionError as exc:
            logger.error("Transcription error for video %s: %s", video_id, exc)
            record = transition(record, VideoStatus.ERROR, error=str(exc))
        else:
            record = transition(record, VideoStatus.COMPLETED, transcript=transcript)

        try:
            self.store.save_metadata(record)
        except StorageError:
            logger.exception("Failed to save final metadata for video %s", video_id)

        self.cache.put(record)
        emit(record, 100, final=True)
        return record

    def _fail(
        self,
        record: VideoRecord,
        message: str,
        emit: Callable[..., None],
    ) -> None:
        failed = self.cache.put(transition(record, VideoStatus.ERROR, error=message))
        emit(failed, 0, final=True)
