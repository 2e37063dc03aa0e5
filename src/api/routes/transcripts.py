"""Transcript status endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_transcription_client
from src.transcription.client import TranscriptionClient
from src.videos.errors import TranscriptionError
from src.videos.models import Transcript

router = APIRouter()


@router.get("/api/transcripts/{transcript_id}", response_model=Transcript)
async def get_transcript_status(
    transcript_id: str,
    transcriber: TranscriptionClient = Depends(get_transcription_client),
) -> Transcript:
    """Fetch the current state of a transcription job from AssemblyAI."""
    try:
        return transcriber.get_transcript(transcript_id)
    except TranscriptionError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
