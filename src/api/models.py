"""Pydantic request/response schemas for the Video Transcriber API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from src.videos.models import Transcript, VideoRecord, VideoStatus


class VideoListResponse(BaseModel):
    """Response body for GET /api/videos.

    ``success`` stays true when storage is unreachable and ``data`` comes from
    the in-process cache.
    """

    success: bool
    data: list[VideoRecord] = []
    error: str | None = None


class StatusUpdateRequest(BaseModel):
    """Request body for PATCH /api/videos/{id}/status."""

    status: VideoStatus
    transcription: Transcript | None = None


class CredentialsRequest(BaseModel):
    """Email + password for sign-up and sign-in."""

    email: str
    password: str


class SignUpResponse(BaseModel):
    user_id: str


class SessionResponse(BaseModel):
    """Tokens returned by /api/auth/sign-in."""

    access_token: str
    refresh_token: str | None = None
    user_id: str
    email: str | None = None


class UserResponse(BaseModel):
    user_id: str
    email: str | None = None


class MetadataFile(BaseModel):
    """One metadata document in the debug listing."""

    name: str
    data: dict[str, Any]
    has_transcription: bool


class MetadataListResponse(BaseModel):
    """Response body for GET /api/debug/metadata."""

    success: bool
    count: int = 0
    files: list[MetadataFile] = []
    error: str | None = None
