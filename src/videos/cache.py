"""Process-local cache of video records.

The cache is a best-effort mirror of the metadata store: it backs the video
list when storage listing fails and serves status updates issued mid-session.
Entries are evicted least-recently-used once ``maxsize`` is reached and expire
``ttl`` seconds after they were last written. Access is not synchronised; the
last write wins.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator

from cachetools import TTLCache

from src.videos.models import VideoRecord


class VideoCache:
    """Keyed table of :class:`VideoRecord` with LRU + TTL eviction."""

    def __init__(
        self,
        maxsize: int = 1024,
        ttl: float = 6 * 60 * 60,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._records: TTLCache[str, VideoRecord] = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def get(self, video_id: str) -> VideoRecord | None:
        return self._records.get(video_id)

    def put(self, record: VideoRecord, key: str | None = None) -> VideoRecord:
        """Store ``record`` under ``key``, which defaults to the record's own id."""
        self._records[record.id if key is None else key] = record
        return record

    def pop(self, video_id: str) -> VideoRecord | None:
        return self._records.pop(video_id, None)

    def values(self) -> list[VideoRecord]:
        """Snapshot of all live records."""
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, video_id: object) -> bool:
        return video_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._records))
