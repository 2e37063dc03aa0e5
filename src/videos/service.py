"""Single-video operations on top of the cache and metadata store."""

from __future__ import annotations

import logging
from typing import Any

from src.storage.blob_index import BlobIndex
from src.storage.objects import VIDEOS_PREFIX, ObjectStore, metadata_path
from src.videos.cache import VideoCache
from src.videos.lifecycle import transition
from src.videos.models import Transcript, VideoRecord, VideoStatus
from src.videos.reconciler import video_id_from_blob_name

logger = logging.getLogger(__name__)


class VideoNotFoundError(LookupError):
    """No video with the requested id is known."""


def get_video(video_id: str, store: ObjectStore, cache: VideoCache) -> VideoRecord | None:
    """Return the cached record, falling back to the metadata document."""
    cached = cache.get(video_id)
    if cached is not None:
        return cached
    stored = store.read_metadata(video_id)
    if stored is not None:
        cache.put(stored)
    return stored


def update_video_status(
    video_id: str,
    status: VideoStatus,
    cache: VideoCache,
    transcript: Transcript | None = None,
) -> VideoRecord:
    """Move a cached record to ``status``; cache only, nothing is persisted.

    Raises:
        VideoNotFoundError: The id is not in the cache.
        InvalidTransitionError: The lifecycle forbids the change.
    """
    record = cache.get(video_id)
    if record is None:
        raise VideoNotFoundError(video_id)
    changes: dict[str, Any] = {}
    if transcript is not None:
        changes["transcript"] = transcript
    return cache.put(transition(record, status, **changes))


def delete_video(
    video_id: str,
    store: ObjectStore,
    cache: VideoCache,
    blob_index: BlobIndex | None = None,
) -> bool:
    """Remove a video's blobs, metadata document and cache entry.

    Returns False if nothing with that id exists anywhere.
    """
    overrides = blob_index.load() if blob_index is not None else {}
    blob_paths = [
        blob.path
        for blob in store.list_objects(VIDEOS_PREFIX)
        if (overrides.get(blob.path) or video_id_from_blob_name(blob.name)) == video_id
    ]
    has_metadata = store.read_metadata(video_id) is not None
    cached = cache.pop(video_id)

    if not blob_paths and not has_metadata and cached is None:
        return False

    paths = blob_paths + ([metadata_path(video_id)] if has_metadata else [])
    store.remove(paths)
    if blob_index is not None and blob_paths:
        blob_index.unregister(blob_paths)
    logger.info("Deleted video %s (%d objects)", video_id, len(paths))
    return True


def list_metadata_documents(store: ObjectStore) -> list[dict[str, Any]]:
    """Dump every metadata document for debugging; unreadable ones are skipped."""
    files: list[dict[str, Any]] = []
    for obj in store.list_metadata():
        try:
            data = store.read_json(obj.path)
        except Exception:
            logger.exception("Error loading %s", obj.name)
            continue
        transcription = data.get("transcription") if isinstance(data, dict) else None
        files.append(
            {
                "name": obj.name,
                "data": data,
                "has_transcription": bool(transcription and transcription.get("text")),
            }
        )
    return files
