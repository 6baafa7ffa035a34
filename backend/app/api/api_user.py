from fastapi import APIRouter, Depends

from ..models.user import User
from ..schemas.user import UserResponse
from .dependencies import get_current_user

router = APIRouter(tags=["users"])


@router.get("/users/me", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    """Return details for the authenticated user."""
    return current_user
