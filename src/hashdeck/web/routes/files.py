"""Serves media files referenced by cards."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from hashdeck.core.media import MediaError, collection_file
from hashdeck.web.dependencies import ServerState, get_state

router = APIRouter()


@router.get("/{path:path}")
async def collection_media(path: str, state: ServerState = Depends(get_state)):
    """Return a file from inside the collection directory."""
    try:
        file_path = collection_file(state.collection_root, path)
    except MediaError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return FileResponse(file_path)
