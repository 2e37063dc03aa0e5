"""Persisted mapping from video blob path to record id.

Record ids are historically encoded as the numeric prefix of the blob
filename (``videos/{id}_{name}``). The index records the id explicitly at
upload time so the reconciler does not have to rely on string parsing; blobs
uploaded before the index existed still fall back to the filename prefix.

The index is a single JSON document updated read-modify-write without
locking, so two concurrent uploads may drop one another's entry. A dropped
entry only means that blob falls back to filename parsing.
"""

from __future__ import annotations

import json
import logging

from src.storage.objects import ObjectStore
from src.videos.errors import StorageError

logger = logging.getLogger(__name__)

INDEX_PATH = "index/blobs.json"


class BlobIndex:
    """Blob path -> record id map stored at :data:`INDEX_PATH`."""

    def __init__(self, store: ObjectStore, path: str = INDEX_PATH) -> None:
        self._store = store
        self._path = path

    def load(self) -> dict[str, str]:
        """Return the current mapping; an empty one if the document is missing or bad."""
        try:
            data = self._store.read_json(self._path)
        except (StorageError, json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Blob index %s not available; using filename ids", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Blob index %s is not a JSON object; ignoring it", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def register(self, blob_path: str, video_id: str) -> None:
        mapping = self.load()
        mapping[blob_path] = video_id
        self._store.write_json(self._path, json.dumps(mapping, sort_keys=True))
        logger.info("Indexed %s -> %s", blob_path, video_id)

    def unregister(self, blob_paths: list[str]) -> None:
        mapping = self.load()
        removed = [p for p in blob_paths if mapping.pop(p, None) is not None]
        if removed:
            self._store.write_json(self._path, json.dumps(mapping, sort_keys=True))
