"""Exception hierarchy for the upload, storage and transcription flows.

None of these are retried automatically; recovery means re-uploading.
"""

from __future__ import annotations


class VideoError(Exception):
    """Base class for all video pipeline errors."""


class UploadValidationError(VideoError):
    """The file was rejected before any network call (bad type or size)."""

    def __init__(self, reason: str, *, too_large: bool = False) -> None:
        super().__init__(reason)
        self.reason = reason
        self.too_large = too_large


class StorageError(VideoError):
    """A storage adapter call failed."""


class UploadTransportError(VideoError):
    """Streaming the video bytes to object storage failed."""


class MetadataSaveError(VideoError):
    """Writing the metadata document failed; the upload flow is aborted."""


class TranscriptionError(VideoError):
    """The transcription service rejected the media or could not be reached."""


class InvalidTransitionError(VideoError):
    """A status change was requested that the lifecycle does not allow."""
