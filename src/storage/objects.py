"""Supabase Storage helpers for video blobs and metadata documents.

One bucket holds three namespaces:

- ``videos/{id}_{filename}``: the uploaded video bytes
- ``metadata/{id}.json``: one :class:`VideoRecord` document per video
- ``index/blobs.json``: the blob index (see :mod:`src.storage.blob_index`)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from typing import IO, Any

import httpx
from pydantic import ValidationError
from supabase import Client, create_client

from src.config import settings
from src.videos.errors import StorageError
from src.videos.models import StorageObject, VideoRecord

logger = logging.getLogger(__name__)

VIDEOS_PREFIX = "videos"
METADATA_PREFIX = "metadata"

# Supabase caps a single list() page; page through until a short page comes back
LIST_PAGE_SIZE = 1000

ChunkCallback = Callable[[int, int], None]


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def metadata_path(video_id: str) -> str:
    return f"{METADATA_PREFIX}/{video_id}.json"


def video_path(video_id: str, filename: str) -> str:
    return f"{VIDEOS_PREFIX}/{video_id}_{filename}"


class ObjectStore:
    """Thin wrapper over one Supabase Storage bucket.

    Listing, downloads and small writes go through the ``supabase`` client.
    Video uploads are streamed with ``httpx`` so that progress can be reported
    per chunk.
    """

    def __init__(
        self,
        client: Client,
        bucket: str,
        *,
        supabase_url: str = "",
        api_key: str = "",
        signed_url_ttl: int = 0,
        chunk_size: int = 1024 * 1024,
        upload_timeout: float = 300.0,
    ) -> None:
        self._client = client
        self.bucket = bucket
        self._supabase_url = supabase_url.rstrip("/")
        self._api_key = api_key
        self._signed_url_ttl = signed_url_ttl
        self._chunk_size = chunk_size
        self._upload_timeout = upload_timeout

    @classmethod
    def from_settings(cls) -> ObjectStore:
        return cls(
            get_supabase_client(),
            settings.storage_bucket,
            supabase_url=settings.supabase_url,
            api_key=settings.supabase_key,
            signed_url_ttl=settings.signed_url_ttl_seconds,
            chunk_size=settings.upload_chunk_size,
            upload_timeout=settings.upload_timeout_seconds,
        )

    def _bucket(self) -> Any:
        return self._client.storage.from_(self.bucket)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_objects(self, prefix: str) -> list[StorageObject]:
        """List every file directly under ``prefix``.

        Raises:
            StorageError: The listing call failed.
        """
        objects: list[StorageObject] = []
        offset = 0
        while True:
            try:
                page = self._bucket().list(
                    prefix,
                    {
                        "limit": LIST_PAGE_SIZE,
                        "offset": offset,
                        "sortBy": {"column": "name", "order": "asc"},
                    },
                )
            except Exception as exc:
                raise StorageError(f"Listing {prefix}/ failed: {exc}") from exc

            for item in page:
                # Folder placeholders have no id
                if item.get("id") is None:
                    continue
                meta = item.get("metadata") or {}
                try:
                    obj = StorageObject(
                        name=item["name"],
                        path=f"{prefix}/{item['name']}",
                        size=int(meta.get("size") or 0),
                        created_at=item.get("created_at") or item.get("updated_at"),
                        content_type=meta.get("mimetype"),
                    )
                except (KeyError, ValueError, ValidationError):
                    logger.warning("Skipping malformed listing entry under %s/: %r", prefix, item)
                    continue
                objects.append(obj)

            if len(page) < LIST_PAGE_SIZE:
                break
            offset += LIST_PAGE_SIZE
        return objects

    def list_videos(self) -> list[StorageObject]:
        """List video blobs with their download URLs resolved.

        A blob whose URL cannot be resolved is logged and left out.
        """
        videos: list[StorageObject] = []
        for video in self.list_objects(VIDEOS_PREFIX):
            try:
                url = self.download_url(video.path)
            except StorageError:
                logger.exception("Skipping %s: no download URL", video.path)
                continue
            videos.append(video.model_copy(update={"url": url}))
        return videos

    def list_metadata(self) -> list[StorageObject]:
        return [m for m in self.list_objects(METADATA_PREFIX) if m.name.endswith(".json")]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def download_url(self, path: str) -> str:
        """Return a URL the browser and the transcription service can fetch."""
        try:
            if self._signed_url_ttl > 0:
                signed = self._bucket().create_signed_url(path, self._signed_url_ttl)
                return str(signed.get("signedURL") or signed.get("signedUrl"))
            return str(self._bucket().get_public_url(path))
        except Exception as exc:
            raise StorageError(f"Could not resolve URL for {path}: {exc}") from exc

    def read_bytes(self, path: str) -> bytes:
        try:
            return bytes(self._bucket().download(path))
        except Exception as exc:
            raise StorageError(f"Download of {path} failed: {exc}") from exc

    def read_json(self, path: str) -> Any:
        return json.loads(self.read_bytes(path))

    def load_metadata(self, obj: StorageObject) -> VideoRecord:
        """Load the metadata document behind a listing entry."""
        return VideoRecord.model_validate_json(self.read_bytes(obj.path))

    def read_metadata(self, video_id: str) -> VideoRecord | None:
        """Fetch ``metadata/{video_id}.json``; ``None`` if missing or unreadable."""
        try:
            return VideoRecord.model_validate_json(self.read_bytes(metadata_path(video_id)))
        except Exception:
            logger.debug("No metadata document for video %s", video_id)
            return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write_json(self, path: str, payload: str) -> None:
        try:
            self._bucket().upload(
                path,
                payload.encode("utf-8"),
                file_options={"content-type": "application/json", "upsert": "true"},
            )
        except Exception as exc:
            raise StorageError(f"Upload of {path} failed: {exc}") from exc

    def save_metadata(self, record: VideoRecord) -> None:
        """Write (or overwrite) the metadata document for ``record``."""
        self.write_json(metadata_path(record.id), record.to_document())
        logger.info("Saved metadata for video %s (status=%s)", record.id, record.status.value)

    def upload_video(
        self,
        path: str,
        stream: IO[bytes],
        size: int,
        content_type: str,
        on_chunk: ChunkCallback | None = None,
    ) -> str:
        """Stream ``stream`` to ``path`` and return its download URL.

        ``on_chunk(bytes_sent, total_bytes)`` is called after each chunk is
        handed to the transport.

        Raises:
            StorageError: The upload request failed or was rejected.
        """
        url = f"{self._supabase_url}/storage/v1/object/{self.bucket}/{path}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "apikey": self._api_key,
            "Content-Type": content_type,
            "Content-Length": str(size),
            "x-upsert": "false",
        }

        def _chunks() -> Iterator[bytes]:
            sent = 0
            while chunk := stream.read(self._chunk_size):
                sent += len(chunk)
                yield chunk
                if on_chunk is not None:
                    on_chunk(sent, size)

        try:
            response = httpx.post(
                url, content=_chunks(), headers=headers, timeout=self._upload_timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(f"Upload of {path} failed: {exc}") from exc

        logger.info("Uploaded %s (%d bytes)", path, size)
        return self.download_url(path)

    def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            self._bucket().remove(paths)
        except Exception as exc:
            raise StorageError(f"Removing {len(paths)} object(s) failed: {exc}") from exc
