from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # AssemblyAI
    assemblyai_api_key: str = ""
    assemblyai_speech_models: list[str] = []  # JSON list in env, e.g. '["universal"]'
    transcription_language: str = "en"
    speaker_labels: bool = True

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    storage_bucket: str = "media"
    signed_url_ttl_seconds: int = 0  # 0 = public bucket URLs, >0 = signed URLs

    # Uploads
    upload_chunk_size: int = 1024 * 1024
    upload_timeout_seconds: float = 300.0

    # Ephemeral cache
    cache_max_entries: int = 1024
    cache_ttl_seconds: float = 6 * 60 * 60

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8501"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
