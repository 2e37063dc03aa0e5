"""Shared FastAPI dependencies: one store, cache and transcriber per process."""

from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from src.config import settings
from src.storage.blob_index import BlobIndex
from src.storage.objects import ObjectStore
from src.transcription.client import TranscriptionClient
from src.videos.cache import VideoCache


@lru_cache(maxsize=1)
def get_video_cache() -> VideoCache:
    return VideoCache(maxsize=settings.cache_max_entries, ttl=settings.cache_ttl_seconds)


def get_object_store() -> ObjectStore:
    return ObjectStore.from_settings()


def get_blob_index() -> BlobIndex:
    return BlobIndex(get_object_store())


def get_transcription_client() -> TranscriptionClient:
    """The AssemblyAI client; 501 when no API key is configured."""
    if not settings.assemblyai_api_key:
        raise HTTPException(
            status_code=501,
            detail="Transcription is not configured: ASSEMBLYAI_API_KEY is not set.",
        )
    return TranscriptionClient.from_settings()
