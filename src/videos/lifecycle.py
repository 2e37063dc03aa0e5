"""Video status lifecycle.

``uploading -> processing -> completed``, with ``error`` reachable from either
non-terminal state. ``completed`` and ``error`` are terminal.
"""

from __future__ import annotations

from typing import Any

from src.videos.errors import InvalidTransitionError
from src.videos.models import VideoRecord, VideoStatus

TRANSITIONS: dict[VideoStatus, frozenset[VideoStatus]] = {
    VideoStatus.UPLOADING: frozenset({VideoStatus.PROCESSING, VideoStatus.ERROR}),
    VideoStatus.PROCESSING: frozenset({VideoStatus.COMPLETED, VideoStatus.ERROR}),
    VideoStatus.COMPLETED: frozenset(),
    VideoStatus.ERROR: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def can_transition(current: VideoStatus, target: VideoStatus) -> bool:
    return target in TRANSITIONS[current]


def transition(record: VideoRecord, target: VideoStatus, **changes: Any) -> VideoRecord:
    """Return a copy of ``record`` moved to ``target`` with ``changes`` applied.

    Raises:
        InvalidTransitionError: ``target`` is not reachable from the record's status.
    """
    if not can_transition(record.status, target):
        raise InvalidTransitionError(
            f"Video {record.id} cannot move from {record.status.value} to {target.value}"
        )
    return record.model_copy(update={**changes, "status": target})
