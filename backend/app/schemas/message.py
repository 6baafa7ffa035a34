from datetime import datetime
from typing import Annotated, List

from pydantic import BaseModel, Field, field_validator

MAX_MESSAGE_LENGTH = 2000


class MessageCreate(BaseModel):
    content: Annotated[str, Field(max_length=MAX_MESSAGE_LENGTH)]

    @field_validator("content")
    def non_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v


class MessageResponse(BaseModel):
    id: int
    booking_id: str
    sender_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageListResponse(BaseModel):
    items: List[MessageResponse]
    has_more: bool = False
