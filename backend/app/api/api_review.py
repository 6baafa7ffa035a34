from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from typing import List, Any

from ..database import get_db
from ..models.user import User
from ..schemas.review import ReviewCreate, ReviewResponse
from ..crud import crud_review
from ..crud.crud_message import get_booking_for_participant
from ..utils.errors import NotFoundError
from .dependencies import get_current_user

# Using a nested route for creating reviews under bookings
router = APIRouter(tags=["Reviews"])


@router.post(
    "/bookings/{booking_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_review_for_booking(
    *,
    db: Session = Depends(get_db),
    booking_id: str = Path(..., title="The ID of the booking to review"),
    review_in: ReviewCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Create a review for a specific booking.
    Only the customer who made the booking can review it, and only if it's completed.
    """
    return crud_review.review.create_review(
        db, review=review_in, customer_id=current_user.id, booking_id=booking_id
    )


@router.get("/bookings/{booking_id}/reviews", response_model=ReviewResponse)
def read_review_for_booking(
    *,
    db: Session = Depends(get_db),
    booking_id: str = Path(..., title="The ID of the booking"),
    current_user: User = Depends(get_current_user),
) -> Any:
    get_booking_for_participant(db, booking_id, current_user.id)
    db_review = crud_review.review.get_review_for_booking(db, booking_id)
    if db_review is None:
        raise NotFoundError("Review not found for this booking.", {"booking_id": "no_review"})
    return db_review


@router.get("/chefs/{chef_id}/reviews", response_model=List[ReviewResponse])
def read_reviews_for_chef(
    *,
    db: Session = Depends(get_db),
    chef_id: int = Path(..., title="The ID of the chef"),
    skip: int = 0,
    limit: int = 100,
) -> Any:
    """Public list of a chef's reviews, newest first."""
    return crud_review.review.get_reviews_by_chef(db, chef_id=chef_id, skip=skip, limit=limit)
