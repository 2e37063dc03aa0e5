"""Tests for Settings, environment overrides, and the enum/status wiring."""

from __future__ import annotations

import pytest

from src.config import Settings, get_settings
from src.videos.models import TranscriptStatus, VideoStatus


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.storage_bucket == "media"
        assert s.transcription_language == "en"
        assert s.speaker_labels is True
        assert s.signed_url_ttl_seconds == 0
        assert s.upload_chunk_size == 1024 * 1024
        assert s.cache_ttl_seconds == 6 * 60 * 60

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BUCKET", "videos-prod")
        monkeypatch.setenv("SIGNED_URL_TTL_SECONDS", "600")
        monkeypatch.setenv("SPEAKER_LABELS", "false")
        monkeypatch.setenv("ASSEMBLYAI_SPEECH_MODELS", '["universal"]')

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.storage_bucket == "videos-prod"
        assert s.signed_url_ttl_seconds == 600
        assert s.speaker_labels is False
        assert s.assemblyai_speech_models == ["universal"]

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()


class TestStatusEnums:
    def test_video_status_values(self) -> None:
        assert [s.value for s in VideoStatus] == ["uploading", "processing", "completed", "error"]

    def test_from_string(self) -> None:
        assert VideoStatus("completed") is VideoStatus.COMPLETED
        assert TranscriptStatus("queued") is TranscriptStatus.QUEUED

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            VideoStatus("deleted")

    def test_is_str_subclass(self) -> None:
        """Enum values behave as plain strings for JSON serialization."""
        assert isinstance(VideoStatus.ERROR, str)
