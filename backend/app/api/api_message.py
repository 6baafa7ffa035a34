from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..schemas.message import MessageCreate, MessageListResponse, MessageResponse
from ..crud import crud_message
from .dependencies import get_current_user

router = APIRouter(tags=["messages"])


@router.get("/bookings/{booking_id}/messages", response_model=MessageListResponse)
def read_messages(
    booking_id: str,
    after_id: Optional[int] = Query(None, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Chat history for a booking, oldest first."""
    rows = crud_message.get_messages_for_booking(
        db, booking_id, current_user.id, after_id=after_id, limit=limit + 1
    )
    has_more = len(rows) > limit
    return MessageListResponse(
        items=[MessageResponse.model_validate(m) for m in rows[:limit]],
        has_more=has_more,
    )


@router.post(
    "/bookings/{booking_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_message(
    booking_id: str,
    message_in: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_message.create_message(db, booking_id, current_user.id, message_in.content)
