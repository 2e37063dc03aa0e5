"""Shared fixtures: an in-memory object store and a FastAPI client wired to it."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from typing import IO
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.deps import (
    get_blob_index,
    get_object_store,
    get_transcription_client,
    get_video_cache,
)
from src.api.main import app
from src.auth import Principal, get_current_user
from src.storage.blob_index import BlobIndex
from src.storage.objects import ObjectStore
from src.transcription.client import TranscriptionClient
from src.videos.cache import VideoCache
from src.videos.errors import StorageError
from src.videos.models import StorageObject, Transcript, VideoRecord, VideoStatus

BASE_URL = "https://storage.test/object/public/media"


class FakeObjectStore(ObjectStore):
    """ObjectStore whose bucket is a dict; everything above the raw calls is real."""

    def __init__(self) -> None:
        super().__init__(client=MagicMock(), bucket="media")
        self.objects: dict[str, tuple[bytes, datetime]] = {}
        self.writes: list[tuple[str, str]] = []
        self.failing_prefixes: set[str] = set()
        self.fail_writes = False
        self.fail_uploads = False
        self.token = "tok-1"
        self.reverse_listing = False
        self.failing_urls: set[str] = set()

    def add(self, path: str, data: bytes | str, created_at: datetime | None = None) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.objects[path] = (data, created_at or datetime(2024, 1, 1, tzinfo=timezone.utc))

    def add_metadata(self, record: VideoRecord, name: str | None = None) -> None:
        self.add(f"metadata/{name or record.id + '.json'}", record.to_document())

    def list_objects(self, prefix: str) -> list[StorageObject]:
        if prefix in self.failing_prefixes:
            raise StorageError(f"Listing {prefix}/ failed: connection reset")
        objects = [
            StorageObject(
                name=path.split("/", 1)[1],
                path=path,
                size=len(data),
                created_at=created,
            )
            for path, (data, created) in sorted(self.objects.items())
            if path.startswith(prefix + "/") and "/" not in path[len(prefix) + 1 :]
        ]
        return objects[::-1] if self.reverse_listing else objects

    def download_url(self, path: str) -> str:
        if path in self.failing_urls:
            raise StorageError(f"Could not resolve URL for {path}: 400")
        return f"{BASE_URL}/{path}?token={self.token}"

    def read_bytes(self, path: str) -> bytes:
        if path not in self.objects:
            raise StorageError(f"Download of {path} failed: not found")
        return self.objects[path][0]

    def write_json(self, path: str, payload: str) -> None:
        if self.fail_writes:
            raise StorageError(f"Upload of {path} failed: 503")
        self.writes.append((path, payload))
        self.add(path, payload)

    def upload_video(
        self,
        path: str,
        stream: IO[bytes],
        size: int,
        content_type: str,
        on_chunk: Callable[[int, int], None] | None = None,
    ) -> str:
        if self.fail_uploads:
            raise StorageError(f"Upload of {path} failed: connection reset")
        data = b""
        chunk_size = max(size // 4, 1)
        while chunk := stream.read(chunk_size):
            data += chunk
            if on_chunk is not None:
                on_chunk(len(data), size)
        self.writes.append((path, content_type))
        self.add(path, data)
        return self.download_url(path)

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.objects.pop(path, None)

    def metadata_writes(self) -> list[VideoRecord]:
        return [
            VideoRecord.model_validate_json(payload)
            for path, payload in self.writes
            if path.startswith("metadata/")
        ]


def make_record(
    video_id: str,
    *,
    url: str | None = None,
    uploaded_at: datetime | None = None,
    status: VideoStatus = VideoStatus.COMPLETED,
    transcript_text: str | None = None,
    name: str = "clip.mp4",
    size: int = 10,
) -> VideoRecord:
    return VideoRecord(
        id=video_id,
        name=name,
        url=url or f"{BASE_URL}/videos/{video_id}_{name}?token=stale",
        size=size,
        uploaded_at=uploaded_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        status=status,
        transcript=(
            Transcript(id=f"t-{video_id}", text=transcript_text)
            if transcript_text is not None
            else None
        ),
    )


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def cache() -> VideoCache:
    return VideoCache()


@pytest.fixture
def transcriber() -> MagicMock:
    mock = MagicMock(spec=TranscriptionClient)
    mock.transcribe.return_value = Transcript(
        id="tr-1",
        text="Hello there. General Kenobi.",
        utterances=[
            {"speaker": "A", "text": "Hello there.", "start": 0, "end": 900, "confidence": 0.9},
            {"speaker": "B", "text": "General Kenobi.", "start": 1000, "end": 2000, "confidence": 0.8},
        ],
    )
    return mock


@pytest.fixture
def principal() -> Principal:
    return Principal(user_id="user-1", email="user@example.com", access_token="token-1")


@pytest.fixture
def client(
    store: FakeObjectStore,
    cache: VideoCache,
    transcriber: MagicMock,
) -> Iterator[TestClient]:
    """Anonymous client; storage, cache and transcriber are in-memory."""
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_video_cache] = lambda: cache
    app.dependency_overrides[get_blob_index] = lambda: BlobIndex(store)
    app.dependency_overrides[get_transcription_client] = lambda: transcriber
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def authed_client(client: TestClient, principal: Principal) -> TestClient:
    """Same as ``client`` but every request is signed in."""
    app.dependency_overrides[get_current_user] = lambda: principal
    return client
