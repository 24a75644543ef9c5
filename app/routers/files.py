from fastapi import APIRouter, Depends, Response, status

from app.dependencies import get_storage
from app.errors import NotFoundOrUnauthorized

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get("/logos/{name}")
async def get_logo(name: str, storage=Depends(get_storage)):
    """Serve a company logo uploaded at signup. Public, like the URL stored on the user."""
    found = await storage.open(f"logos/{name}")
    if found is None:
        raise NotFoundOrUnauthorized("Logo not found", status_code=status.HTTP_404_NOT_FOUND)
    data, content_type = found
    return Response(content=data, media_type=content_type)
