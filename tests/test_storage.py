"""Tests for the Supabase Storage adapter and the blob index (Supabase mocked)."""

from __future__ import annotations

import io
import json
from unittest.mock import MagicMock, patch

import httpx
import pytest
from conftest import FakeObjectStore, make_record

from src.storage.blob_index import BlobIndex
from src.storage.objects import ObjectStore, metadata_path, video_path
from src.videos.cache import VideoCache
from src.videos.errors import StorageError
from src.videos.reconciler import list_videos


def _item(name: str, size: int = 10, item_id: str | None = "obj-id") -> dict:
    return {
        "name": name,
        "id": item_id,
        "created_at": "2024-02-01T08:00:00.000Z",
        "metadata": {"size": size, "mimetype": "video/mp4"},
    }


@pytest.fixture
def bucket() -> MagicMock:
    return MagicMock()


@pytest.fixture
def object_store(bucket: MagicMock) -> ObjectStore:
    client = MagicMock()
    client.storage.from_.return_value = bucket
    return ObjectStore(
        client,
        "media",
        supabase_url="https://proj.supabase.co/",
        api_key="service-key",
        chunk_size=4,
    )


class TestPaths:
    def test_metadata_path(self) -> None:
        assert metadata_path("123") == "metadata/123.json"

    def test_video_path(self) -> None:
        assert video_path("123", "clip.mp4") == "videos/123_clip.mp4"


class TestListing:
    def test_lists_files_and_skips_folders(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        bucket.list.return_value = [_item("1_a.mp4", size=5), _item("nested", item_id=None)]

        objects = object_store.list_objects("videos")

        assert [o.path for o in objects] == ["videos/1_a.mp4"]
        assert objects[0].size == 5
        assert objects[0].content_type == "video/mp4"
        assert objects[0].created_at.tzinfo is not None

    def test_pages_through_results(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        bucket.list.side_effect = [
            [_item("1_a.mp4"), _item("2_b.mp4")],
            [_item("3_c.mp4")],
        ]
        with patch("src.storage.objects.LIST_PAGE_SIZE", 2):
            objects = object_store.list_objects("videos")

        assert [o.name for o in objects] == ["1_a.mp4", "2_b.mp4", "3_c.mp4"]
        offsets = [call.args[1]["offset"] for call in bucket.list.call_args_list]
        assert offsets == [0, 2]

    def test_listing_failure_raises_storage_error(
        self, object_store: ObjectStore, bucket: MagicMock
    ) -> None:
        bucket.list.side_effect = RuntimeError("connection reset")
        with pytest.raises(StorageError):
            object_store.list_objects("metadata")

    def test_list_metadata_only_json(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        bucket.list.return_value = [_item("1.json"), _item("notes.txt")]
        assert [o.name for o in object_store.list_metadata()] == ["1.json"]

    def test_list_videos_resolves_urls(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        bucket.list.return_value = [_item("1_a.mp4")]
        bucket.get_public_url.return_value = "https://cdn/videos/1_a.mp4"

        [video] = object_store.list_videos()

        assert video.url == "https://cdn/videos/1_a.mp4"
        bucket.get_public_url.assert_called_once_with("videos/1_a.mp4")

    def test_malformed_entry_is_skipped(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        no_timestamp = {"id": "x", "name": "1_a.mp4", "metadata": {"size": 1}}
        bucket.list.return_value = [no_timestamp, _item("2_b.mp4")]

        assert [o.name for o in object_store.list_objects("videos")] == ["2_b.mp4"]

    def test_malformed_entry_does_not_fail_video_list(
        self, object_store: ObjectStore, bucket: MagicMock
    ) -> None:
        bucket.list.return_value = [
            {"id": "x", "name": "1_a.mp4", "metadata": {"size": 1}},
            _item("2_b.mp4"),
        ]
        bucket.get_public_url.side_effect = lambda path: f"https://cdn/{path}"
        bucket.download.side_effect = RuntimeError("Object not found")

        result = list_videos(object_store, VideoCache())

        assert result.success is True
        assert [r.id for r in result.data] == ["2"]

    def test_url_failure_skips_only_that_blob(
        self, object_store: ObjectStore, bucket: MagicMock
    ) -> None:
        bucket.list.return_value = [_item("1_a.mp4"), _item("2_b.mp4")]

        def public_url(path: str) -> str:
            if path.endswith("2_b.mp4"):
                raise RuntimeError("403 Forbidden")
            return f"https://cdn/{path}"

        bucket.get_public_url.side_effect = public_url

        assert [v.name for v in object_store.list_videos()] == ["1_a.mp4"]


class TestUrls:
    def test_public_url_by_default(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        bucket.get_public_url.return_value = "https://cdn/x"
        assert object_store.download_url("videos/x") == "https://cdn/x"
        bucket.create_signed_url.assert_not_called()

    def test_signed_url_when_ttl_set(self, bucket: MagicMock) -> None:
        client = MagicMock()
        client.storage.from_.return_value = bucket
        bucket.create_signed_url.return_value = {"signedURL": "https://cdn/x?token=abc"}
        store = ObjectStore(client, "media", signed_url_ttl=3600)

        assert store.download_url("videos/x") == "https://cdn/x?token=abc"
        bucket.create_signed_url.assert_called_once_with("videos/x", 3600)


class TestMetadata:
    def test_read_metadata_missing_returns_none(
        self, object_store: ObjectStore, bucket: MagicMock
    ) -> None:
        bucket.download.side_effect = RuntimeError("Object not found")
        assert object_store.read_metadata("123") is None

    def test_read_metadata(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        record = make_record("123", transcript_text="hi")
        bucket.download.return_value = record.to_document().encode()

        assert object_store.read_metadata("123") == record
        bucket.download.assert_called_once_with("metadata/123.json")

    def test_save_metadata_upserts_json(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        record = make_record("123")
        object_store.save_metadata(record)

        args, kwargs = bucket.upload.call_args
        assert args[0] == "metadata/123.json"
        assert json.loads(args[1])["uploadedAt"].startswith("2024-01-01")
        assert kwargs["file_options"]["content-type"] == "application/json"
        assert kwargs["file_options"]["upsert"] == "true"

    def test_save_metadata_failure(self, object_store: ObjectStore, bucket: MagicMock) -> None:
        bucket.upload.side_effect = RuntimeError("403 Unauthorized")
        with pytest.raises(StorageError):
            object_store.save_metadata(make_record("123"))


class TestUploadVideo:
    def test_streams_chunks_and_reports_progress(
        self, object_store: ObjectStore, bucket: MagicMock
    ) -> None:
        bucket.get_public_url.return_value = "https://cdn/videos/1_a.mp4"
        sent_body: list[bytes] = []

        def fake_post(url, content, headers, timeout):
            sent_body.extend(content)
            return httpx.Response(200, request=httpx.Request("POST", url))

        progress: list[tuple[int, int]] = []
        with patch("src.storage.objects.httpx.post", side_effect=fake_post) as post:
            url = object_store.upload_video(
                "videos/1_a.mp4",
                io.BytesIO(b"0123456789"),
                10,
                "video/mp4",
                on_chunk=lambda sent, total: progress.append((sent, total)),
            )

        assert url == "https://cdn/videos/1_a.mp4"
        assert b"".join(sent_body) == b"0123456789"
        assert progress == [(4, 10), (8, 10), (10, 10)]
        called_url = post.call_args.args[0]
        assert called_url == "https://proj.supabase.co/storage/v1/object/media/videos/1_a.mp4"
        headers = post.call_args.kwargs["headers"]
        assert headers["Content-Type"] == "video/mp4"
        assert headers["Content-Length"] == "10"

    def test_rejected_upload_raises(self, object_store: ObjectStore) -> None:
        def fake_post(url, content, headers, timeout):
            return httpx.Response(413, request=httpx.Request("POST", url))

        with patch("src.storage.objects.httpx.post", side_effect=fake_post):
            with pytest.raises(StorageError):
                object_store.upload_video("videos/1_a.mp4", io.BytesIO(b"x"), 1, "video/mp4")

    def test_transport_error_raises(self, object_store: ObjectStore) -> None:
        with patch(
            "src.storage.objects.httpx.post", side_effect=httpx.ConnectError("connection refused")
        ):
            with pytest.raises(StorageError):
                object_store.upload_video("videos/1_a.mp4", io.BytesIO(b"x"), 1, "video/mp4")


class TestBlobIndex:
    def test_missing_index_is_empty(self, store: FakeObjectStore) -> None:
        assert BlobIndex(store).load() == {}

    def test_register_and_unregister(self, store: FakeObjectStore) -> None:
        index = BlobIndex(store)
        index.register("videos/1_a.mp4", "1")
        index.register("videos/b.mp4", "2")
        assert index.load() == {"videos/1_a.mp4": "1", "videos/b.mp4": "2"}

        index.unregister(["videos/b.mp4"])
        assert index.load() == {"videos/1_a.mp4": "1"}

    def test_corrupt_index_is_ignored(self, store: FakeObjectStore) -> None:
        store.add("index/blobs.json", "[1, 2, 3]")
        assert BlobIndex(store).load() == {}

    def test_unparseable_index_is_ignored(self, store: FakeObjectStore) -> None:
        store.add("index/blobs.json", "{oops")
        assert BlobIndex(store).load() == {}
