"""Video endpoints: reconciled list, detail, status update, delete."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from src.api.deps import get_blob_index, get_object_store, get_video_cache
from src.api.models import StatusUpdateRequest, VideoListResponse
from src.auth import Principal, get_current_user
from src.storage.blob_index import BlobIndex
from src.storage.objects import ObjectStore
from src.videos.cache import VideoCache
from src.videos.errors import InvalidTransitionError, StorageError
from src.videos.models import VideoRecord
from src.videos.reconciler import list_videos
from src.videos.service import VideoNotFoundError, delete_video, get_video, update_video_status

router = APIRouter()


@router.get("/api/videos", response_model=VideoListResponse)
async def get_videos(
    store: ObjectStore = Depends(get_object_store),
    cache: VideoCache = Depends(get_video_cache),
    blob_index: BlobIndex = Depends(get_blob_index),
) -> VideoListResponse:
    """List all videos, newest first.

    Storage failures degrade to the cached records rather than an error.
    """
    result = list_videos(store, cache, blob_index)
    return VideoListResponse(success=result.success, data=result.data, error=result.error)


@router.get("/api/videos/{video_id}", response_model=VideoRecord)
async def get_video_detail(
    video_id: str,
    store: ObjectStore = Depends(get_object_store),
    cache: VideoCache = Depends(get_video_cache),
) -> VideoRecord:
    record = get_video(video_id, store, cache)
    if record is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return record


@router.patch("/api/videos/{video_id}/status", response_model=VideoRecord)
async def patch_video_status(
    video_id: str,
    body: StatusUpdateRequest,
    cache: VideoCache = Depends(get_video_cache),
    _user: Principal = Depends(get_current_user),
) -> VideoRecord:
    """Update a cached record's status (and optionally its transcript)."""
    try:
        return update_video_status(video_id, body.status, cache, body.transcription)
    except VideoNotFoundError:
        raise HTTPException(status_code=404, detail="Video not found") from None
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.delete("/api/videos/{video_id}", status_code=204)
async def remove_video(
    video_id: str,
    store: ObjectStore = Depends(get_object_store),
    cache: VideoCache = Depends(get_video_cache),
    blob_index: BlobIndex = Depends(get_blob_index),
    _user: Principal = Depends(get_current_user),
) -> Response:
    try:
        deleted = delete_video(video_id, store, cache, blob_index)
    except StorageError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Video not found")
    return Response(status_code=204)
