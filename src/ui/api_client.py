"""HTTP client wrapper for the Video Transcriber FastAPI backend."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator

import httpx
import streamlit as st

API_URL = os.getenv("API_URL", "http://localhost:8000")


def _auth_headers(token: str | None) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


def check_health() -> bool:
    """Return True if the API server responds to /health."""
    try:
        r = httpx.get(f"{API_URL}/health", timeout=5.0)
        return r.status_code == 200
    except httpx.ConnectError:
        return False


def sign_in(email: str, password: str) -> dict:  # type: ignore[type-arg]
    """Sign in and return the session (access_token, user_id, email)."""
    try:
        r = httpx.post(
            f"{API_URL}/api/auth/sign-in",
            json={"email": email, "password": password},
            timeout=10.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Sign-in failed: {e}")
        return {}


def sign_up(email: str, password: str) -> bool:
    try:
        r = httpx.post(
            f"{API_URL}/api/auth/sign-up",
            json={"email": email, "password": password},
            timeout=10.0,
        )
        r.raise_for_status()
        return True
    except httpx.HTTPError as e:
        st.error(f"Sign-up failed: {e}")
        return False


def sign_out(token: str) -> None:
    try:
        httpx.post(f"{API_URL}/api/auth/sign-out", headers=_auth_headers(token), timeout=10.0)
    except httpx.HTTPError:
        pass  # the local session is dropped either way


def upload_video(
    file_content: bytes,
    filename: str,
    content_type: str,
    token: str,
) -> Iterator[dict]:  # type: ignore[type-arg]
    """Upload a video and yield progress events as they stream back.

    Validation failures (wrong type, too large, signed out) are reported as a
    single ``error`` event.
    """
    try:
        with httpx.stream(
            "POST",
            f"{API_URL}/api/videos/upload",
            files={"file": (filename, file_content, content_type)},
            headers=_auth_headers(token),
            timeout=None,  # transcription has no upper bound
        ) as r:
            if r.status_code >= 400:
                r.read()
                yield {"status": "error", "progress": 0, "error": r.json().get("detail", r.text)}
                return
            for line in r.iter_lines():
                if line.strip():
                    yield json.loads(line)
    except httpx.HTTPError as e:
        yield {"status": "error", "progress": 0, "error": str(e)}


def get_videos() -> list[dict]:  # type: ignore[type-arg]
    """Fetch the reconciled list of videos."""
    try:
        r = httpx.get(f"{API_URL}/api/videos", timeout=60.0)
        r.raise_for_status()
        return r.json().get("data", [])  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return []


def delete_video(video_id: str, token: str) -> bool:
    try:
        r = httpx.delete(
            f"{API_URL}/api/videos/{video_id}", headers=_auth_headers(token), timeout=30.0
        )
        r.raise_for_status()
        return True
    except httpx.HTTPError as e:
        st.error(f"Delete failed: {e}")
        return False
