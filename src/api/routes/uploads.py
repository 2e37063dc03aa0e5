"""Upload endpoint: stream a video to storage, transcribe it, report progress."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from src.api.deps import (
    get_blob_index,
    get_object_store,
    get_transcription_client,
    get_video_cache,
)
from src.auth import Principal, get_current_user
from src.storage.blob_index import BlobIndex
from src.storage.objects import ObjectStore
from src.transcription.client import TranscriptionClient
from src.videos.cache import VideoCache
from src.videos.errors import UploadValidationError, VideoError
from src.videos.models import UploadProgress
from src.videos.pipeline import UploadPipeline, check_upload

logger = logging.getLogger(__name__)

router = APIRouter()


def _upload_size(file: UploadFile) -> int:
    """Byte size of the spooled upload, without reading it into memory."""
    if file.size is not None:
        return file.size
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size


@router.post("/api/videos/upload")
async def upload_video(
    file: Annotated[UploadFile, File(...)],
    user: Annotated[Principal, Depends(get_current_user)],
    store: Annotated[ObjectStore, Depends(get_object_store)],
    cache: Annotated[VideoCache, Depends(get_video_cache)],
    blob_index: Annotated[BlobIndex, Depends(get_blob_index)],
    transcriber: Annotated[TranscriptionClient, Depends(get_transcription_client)],
) -> StreamingResponse:
    """Upload a video and stream progress as newline-delimited JSON.

    The file is validated before anything is sent to storage:

    - 415 if the content type is not mp4, webm, ogg or quicktime
    - 413 if the file is 250 MiB or larger

    After that the response is a stream of ``UploadProgress`` objects, one per
    line, ending with an event whose ``status`` is ``completed`` or ``error``
    and whose ``video`` holds the final record.
    """
    filename = os.path.basename(file.filename or "video")
    content_type = (file.content_type or "").lower()
    size = _upload_size(file)

    try:
        check_upload(content_type, size)
    except UploadValidationError as exc:
        raise HTTPException(status_code=413 if exc.too_large else 415, detail=exc.reason) from exc

    logger.info("User %s uploading %s (%d bytes)", user.user_id, filename, size)
    pipeline = UploadPipeline(store, cache, transcriber, blob_index)

    # The request file is closed once the handler returns, so stream from our own copy.
    spool = tempfile.TemporaryFile()
    await asyncio.to_thread(shutil.copyfileobj, file.file, spool)
    spool.seek(0)

    async def progress_stream() -> AsyncIterator[str]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[UploadProgress | None] = asyncio.Queue()

        def on_progress(event: UploadProgress) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, event)

        # Blocking SDK calls run in a thread; events hop back onto the loop.
        task = asyncio.create_task(
            asyncio.to_thread(pipeline.run, spool, filename, content_type, size, on_progress)
        )

        def finished(_: asyncio.Future[object]) -> None:
            # The pipeline may still be reading after the client disconnects.
            spool.close()
            queue.put_nowait(None)

        task.add_done_callback(finished)

        try:
            while (event := await queue.get()) is not None:
                yield event.model_dump_json(by_alias=True) + "\n"
            await task
        except VideoError as exc:
            # Already reported to the client as an error event
            logger.warning("Upload of %s failed: %s", filename, exc)

    return StreamingResponse(progress_stream(), media_type="application/x-ndjson")
