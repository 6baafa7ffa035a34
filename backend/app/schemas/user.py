# backend/app/schemas/user.py

from pydantic import BaseModel, EmailStr
from typing import Optional

from ..models.user import UserType


class UserBase(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_type: UserType = UserType.CUSTOMER


class UserResponse(UserBase):
    id: int
    is_active: bool
    avatar_url: Optional[str] = None

    model_config = {
        "from_attributes": True
    }


# TokenData for extracting “sub” (user id) from the bearer token
class TokenData(BaseModel):
    user_id: Optional[int] = None
