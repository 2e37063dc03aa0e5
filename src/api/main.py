import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.auth import router as auth_router
from src.api.routes.debug import router as debug_router
from src.api.routes.transcripts import router as transcripts_router
from src.api.routes.uploads import router as uploads_router
from src.api.routes.videos import router as videos_router
from src.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Video Transcriber API",
    description="Upload videos, transcribe them with speaker labels, browse transcripts",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(uploads_router)
app.include_router(videos_router)
app.include_router(transcripts_router)
app.include_router(debug_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("src.api.main:app", host=settings.api_host, port=settings.api_port)
