from fastapi import APIRouter, Depends, status

from app.dependencies import CurrentUser, get_current_user, get_store
from app.errors import NotFoundOrUnauthorized
from app.models import public_user

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/me")
async def get_current_user_info(
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_store),
):
    user = await store.get_user(current_user.user_id)
    if not user:
        raise NotFoundOrUnauthorized("User not found", status_code=status.HTTP_404_NOT_FOUND)
    return {"success": True, "user": public_user(user)}
