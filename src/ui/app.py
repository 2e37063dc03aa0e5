"""Video Transcriber -- Streamlit UI.

Two pages: upload a video (signed-in users only) and browse uploaded videos
with their speaker-labelled transcripts.
"""

from __future__ import annotations

import streamlit as st

from src.ui.api_client import (
    check_health,
    delete_video,
    get_videos,
    sign_in,
    sign_out,
    sign_up,
    upload_video,
)

VIDEO_TYPES = ["mp4", "webm", "ogg", "mov"]
CONTENT_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogg": "video/ogg",
    "mov": "video/quicktime",
}

STATUS_BADGES = {
    "completed": ":green[completed]",
    "processing": ":orange[processing]",
    "uploading": ":blue[uploading]",
    "error": ":red[error]",
}


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def format_timestamp(ms: int) -> str:
    seconds = ms // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(page_title="Video Transcriber", layout="wide")

if "session" not in st.session_state:
    st.session_state.session = None

# ---------------------------------------------------------------------------
# Sidebar -- navigation + account + API status
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("Video Transcriber")
    st.markdown("---")

    page = st.radio(
        "Navigate",
        ["Upload Video", "Videos"],
        label_visibility="collapsed",
    )

    st.markdown("---")
    st.subheader("Account")

    session = st.session_state.session
    if session:
        st.write(session.get("email") or session.get("user_id"))
        if st.button("Sign out"):
            sign_out(session["access_token"])
            st.session_state.session = None
            st.rerun()
    else:
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        col_in, col_up = st.columns(2)
        if col_in.button("Sign in", disabled=not (email and password)):
            result = sign_in(email, password)
            if result:
                st.session_state.session = result
                st.rerun()
        if col_up.button("Sign up", disabled=not (email and password)):
            if sign_up(email, password):
                st.success("Account created. Check your email, then sign in.")

    st.markdown("---")

    api_healthy = check_health()
    if api_healthy:
        st.markdown(":green_circle: API connected")
    else:
        st.markdown(":red_circle: API unreachable")

# ---------------------------------------------------------------------------
# Page: Upload Video
# ---------------------------------------------------------------------------
if page == "Upload Video":
    st.header("Upload Video")
    st.write("Supports MP4, WebM, OGG, MOV, up to 250MB.")

    session = st.session_state.session
    if not session:
        st.warning("You must be signed in to upload videos.")
    else:
        uploaded_file = st.file_uploader("Choose a video", type=VIDEO_TYPES)

        if st.button("Upload", disabled=uploaded_file is None):
            if not api_healthy:
                st.error("Cannot upload: the API server is not reachable.")
            elif uploaded_file is not None:
                ext = uploaded_file.name.rsplit(".", 1)[-1].lower()
                bar = st.progress(0, text="Uploading...")
                final: dict = {}  # type: ignore[type-arg]
                for event in upload_video(
                    uploaded_file.getvalue(),
                    uploaded_file.name,
                    CONTENT_TYPES.get(ext, uploaded_file.type or ""),
                    session["access_token"],
                ):
                    status = event.get("status")
                    if status == "uploading":
                        percent = event.get("progress", 0)
                        bar.progress(percent, text=f"Uploading... {percent}%")
                    elif status == "processing":
                        bar.progress(100, text="Processing transcription...")
                    final = event

                if final.get("status") == "completed":
                    st.success("Upload and transcription completed!")
                else:
                    st.error(f"Error: {final.get('error') or 'Processing failed'}")

# ---------------------------------------------------------------------------
# Page: Videos
# ---------------------------------------------------------------------------
elif page == "Videos":
    st.header("Videos")

    if st.button("Refresh"):
        st.rerun()

    if not api_healthy:
        st.warning("The API server is not reachable. Cannot load videos.")
    else:
        videos = get_videos()
        if not videos:
            st.info("No videos found. Upload a video or click refresh to load existing videos.")
        for video in videos:
            status = video.get("status", "completed")
            with st.expander(f"{video.get('name', 'Untitled')} -- {STATUS_BADGES.get(status, status)}"):
                col_a, col_b = st.columns(2)
                col_a.metric("Size", format_file_size(int(video.get("size", 0))))
                col_b.metric("Uploaded", str(video.get("uploadedAt", "N/A"))[:19].replace("T", " "))

                if video.get("url"):
                    st.video(video["url"])

                if video.get("error"):
                    st.error(video["error"])

                transcript = video.get("transcription") or {}
                utterances = transcript.get("utterances") or []
                if utterances:
                    st.subheader("Transcript")
                    for u in utterances:
                        st.markdown(
                            f"**Speaker {u['speaker']}** "
                            f"`{format_timestamp(u['start'])}`: {u['text']}"
                        )
                elif transcript.get("text"):
                    st.subheader("Transcript")
                    st.write(transcript["text"])
                else:
                    st.write("No transcription available.")

                session = st.session_state.session
                if session and st.button("Delete", key=f"delete-{video.get('id')}"):
                    if delete_video(video["id"], session["access_token"]):
                        st.rerun()
