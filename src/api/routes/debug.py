"""Debug endpoint: dump every metadata document in storage."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.deps import get_object_store
from src.api.models import MetadataFile, MetadataListResponse
from src.storage.objects import ObjectStore
from src.videos.errors import StorageError
from src.videos.service import list_metadata_documents

router = APIRouter()


@router.get("/api/debug/metadata", response_model=MetadataListResponse)
async def debug_metadata(
    store: ObjectStore = Depends(get_object_store),
) -> MetadataListResponse | JSONResponse:
    try:
        files = list_metadata_documents(store)
    except StorageError as exc:
        return JSONResponse(
            status_code=500,
            content=MetadataListResponse(success=False, error=str(exc)).model_dump(),
        )
    return MetadataListResponse(
        success=True,
        count=len(files),
        files=[MetadataFile(**f) for f in files],
    )
