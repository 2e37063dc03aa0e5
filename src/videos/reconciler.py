"""Merge the video and metadata namespaces into a single list of video records.

Video blobs and metadata documents are listed independently and are linked
only by convention: the metadata document's ``url`` matches the blob's
download URL, and the record id is the prefix of the blob filename before the
first ``_``. Each blob is resolved by the first tier that matches:

1. metadata document whose canonical URL equals the blob's canonical URL
2. metadata document named ``{id}.json``
3. record held in the ephemeral cache under ``id``
4. a record synthesised from the blob alone (status ``completed``)

A metadata document wins over a synthesised record purely by tier order, even
when the blob is newer. When two blobs resolve to the same id, the record
carrying transcript text is kept; otherwise the first one seen wins.

If either namespace cannot be listed the cache contents are returned instead.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from src.storage.blob_index import BlobIndex
from src.storage.objects import ObjectStore
from src.videos.cache import VideoCache
from src.videos.models import StorageObject, VideoRecord, VideoStatus

logger = logging.getLogger(__name__)


def canonical_url(url: str) -> str:
    """Strip the query string (access token) from a storage URL."""
    return url.split("?", 1)[0]


def video_id_from_blob_name(name: str) -> str:
    """Derive the record id from a ``{id}_{originalName}`` blob filename.

    A filename starting with ``_`` has no usable prefix and gets the current
    time in milliseconds. A filename without ``_`` is used whole.
    """
    prefix = name.split("_", 1)[0]
    return prefix or str(int(time.time() * 1000))


def display_name_from_blob_name(name: str) -> str:
    """Strip the ``{id}_`` prefix from a blob filename."""
    _, sep, rest = name.partition("_")
    return rest if sep and rest else name


def sort_records(records: list[VideoRecord]) -> list[VideoRecord]:
    """Newest upload first."""
    return sorted(records, key=lambda r: r.uploaded_at, reverse=True)


@dataclass
class VideoListResult:
    """Envelope returned to callers of :func:`list_videos`."""

    success: bool
    data: list[VideoRecord] = field(default_factory=list)
    error: str | None = None


class Reconciler:
    """Builds the deduplicated video list from storage plus the cache."""

    def __init__(
        self,
        store: ObjectStore,
        cache: VideoCache,
        blob_index: BlobIndex | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.blob_index = blob_index

    def reconcile(self) -> list[VideoRecord]:
        """Return all known videos, newest first. Never raises on storage failure."""
        try:
            metadata_objects = self.store.list_metadata()
            metadata_by_url = self._index_metadata(metadata_objects)
            blobs = self.store.list_videos()
        except Exception:
            logger.exception("Storage listing failed; serving %d cached videos", len(self.cache))
            return sort_records(self.cache.values())

        id_overrides = self.blob_index.load() if self.blob_index is not None else {}
        resolved: dict[str, VideoRecord] = {}
        seen_paths: dict[str, str] = {}

        for blob in blobs:
            try:
                video_id = id_overrides.get(blob.path) or video_id_from_blob_name(blob.name)
                record = self._resolve(blob, video_id, metadata_by_url)
            except Exception:
                logger.exception("Skipping video blob %s", blob.path)
                continue

            if video_id in seen_paths and seen_paths[video_id] != blob.path:
                logger.warning(
                    "Video id collision: %s and %s both resolve to id %s",
                    seen_paths[video_id],
                    blob.path,
                    video_id,
                )
            seen_paths.setdefault(video_id, blob.path)
            merge_candidate(resolved, video_id, record)

        records = sort_records(list(resolved.values()))
        logger.info("Reconciled %d videos from %d blobs", len(records), len(blobs))
        return records

    def _index_metadata(self, objects: list[StorageObject]) -> dict[str, VideoRecord]:
        by_url: dict[str, VideoRecord] = {}
        for obj in objects:
            try:
                record = self.store.load_metadata(obj)
            except Exception:
                logger.exception("Error loading metadata %s", obj.name)
                continue
            by_url[canonical_url(record.url)] = record
            logger.debug(
                "Loaded metadata %s, has transcription: %s", obj.name, record.has_transcript_text
            )
        return by_url

    def _resolve(
        self,
        blob: StorageObject,
        video_id: str,
        metadata_by_url: dict[str, VideoRecord],
    ) -> VideoRecord:
        url = blob.url or ""

        matched = metadata_by_url.get(canonical_url(url))
        if matched is not None:
            logger.debug("Video %s matched metadata by URL", video_id)
            record = matched.model_copy(update={"id": video_id, "url": url, "size": blob.size})
            return self.cache.put(record, key=video_id)

        stored = self.store.read_metadata(video_id)
        if stored is not None:
            logger.debug("Video %s matched metadata by id", video_id)
            return self.cache.put(
                stored.model_copy(update={"url": url, "size": blob.size}), key=video_id
            )

        cached = self.cache.get(video_id)
        if cached is not None:
            logger.debug("Video %s found in cache", video_id)
            return self.cache.put(cached.model_copy(update={"url": url}), key=video_id)

        logger.debug("Synthesising record for video %s", video_id)
        return self.cache.put(
            VideoRecord(
                id=video_id,
                name=display_name_from_blob_name(blob.name),
                url=url,
                size=blob.size,
                uploaded_at=blob.created_at,
                status=VideoStatus.COMPLETED,
            ),
            key=video_id,
        )


def merge_candidate(
    resolved: dict[str, VideoRecord], video_id: str, record: VideoRecord
) -> None:
    """Insert ``record`` under ``video_id``, replacing an entry only to gain transcript text.

    The key is the id derived from the blob, not ``record.id``: a metadata
    document may carry a different id than the file it was found under.
    """
    existing = resolved.get(video_id)
    if existing is None:
        resolved[video_id] = record
    elif record.has_transcript_text and not existing.has_transcript_text:
        logger.info("Replacing video %s with version that has transcription", video_id)
        resolved[video_id] = record


def list_videos(
    store: ObjectStore,
    cache: VideoCache,
    blob_index: BlobIndex | None = None,
) -> VideoListResult:
    """Reconcile storage into the response envelope used by the API."""
    try:
        return VideoListResult(success=True, data=Reconciler(store, cache, blob_index).reconcile())
    except Exception as exc:
        logger.exception("Get videos error")
        return VideoListResult(success=False, data=[], error=str(exc))
