from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..database import get_db
from ..models.user import User
from ..models.booking_status import BookingStatus
from ..schemas.booking import BookingCreate, BookingReschedule, BookingResponse
from ..crud import crud_booking
from ..crud.crud_booking import PAST, UPCOMING
from ..services.booking_lifecycle import KEEP, BookingLifecycleManager
from ..utils.errors import NotFoundError, PermissionDeniedError, ValidationError
from ..services.identity import Actor
from .dependencies import get_booking_manager, get_current_actor, get_current_chef, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])

_LIST_FILTERS = {UPCOMING, PAST} | {s.value for s in BookingStatus}


def _check_filter(status_filter: Optional[str]) -> Optional[str]:
    if status_filter is None:
        return None
    value = status_filter.strip().lower()
    if value not in _LIST_FILTERS:
        raise ValidationError(
            "Invalid status filter",
            {"status": f"expected one of {', '.join(sorted(_LIST_FILTERS))}"},
        )
    return value


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Request a booking with a chef. The booking starts out pending."""
    return manager.create_booking(
        actor_id=actor.user_id,
        chef_id=booking_in.chef_id,
        booking_date=booking_in.booking_date,
        start_time=booking_in.start_time,
        duration_hours=booking_in.duration_hours,
        guest_count=booking_in.guest_count,
        special_requests=booking_in.special_requests,
    )


@router.get("/my-bookings", response_model=List[BookingResponse])
def read_my_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: Optional[str] = Query(None, alias="status", description="upcoming, past or a booking status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
):
    return crud_booking.booking.get_bookings_by_customer(
        db,
        customer_id=current_user.id,
        status_filter=_check_filter(status_filter),
        skip=skip,
        limit=limit,
    )


@router.get("/chef-bookings", response_model=List[BookingResponse])
def read_chef_bookings(
    db: Session = Depends(get_db),
    current_chef: User = Depends(get_current_chef),
    status_filter: Optional[str] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
):
    return crud_booking.booking.get_bookings_by_chef(
        db,
        chef_id=current_chef.id,
        status_filter=_check_filter(status_filter),
        skip=skip,
        limit=limit,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
def read_booking_details(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    db_booking = crud_booking.booking.get_booking(db, booking_id)
    if db_booking is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    if current_user.id not in (db_booking.chef_id, db_booking.customer_id):
        raise PermissionDeniedError("Not a participant of this booking", {"booking_id": "not_participant"})
    return db_booking


@router.post("/{booking_id}/accept", response_model=BookingResponse)
def accept_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    return manager.accept_booking(actor.user_id, booking_id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    return manager.cancel_booking(actor.user_id, booking_id)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    return manager.complete_booking(actor.user_id, booking_id)


@router.patch("/{booking_id}", response_model=BookingResponse)
def reschedule_booking(
    booking_id: str,
    changes: BookingReschedule,
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Move a pending booking to a new slot; the price is recomputed.

    Omit ``special_requests`` to keep the current text; send ``null`` or an
    empty string to clear it.
    """
    return manager.reschedule_booking(
        actor.user_id,
        booking_id,
        booking_date=changes.booking_date,
        start_time=changes.start_time,
        duration_hours=changes.duration_hours,
        guest_count=changes.guest_count,
        special_requests=changes.special_requests if "special_requests" in changes.model_fields_set else KEEP,
    )
