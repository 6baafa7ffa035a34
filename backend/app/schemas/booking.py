from pydantic import BaseModel, Field, field_validator
from typing import Optional, Annotated
from datetime import date, datetime, time
from decimal import Decimal
from ..models.booking_status import BookingStatus
from .user import UserResponse  # For nesting customer details

Hours = Annotated[Decimal, Field(gt=0, max_digits=5, decimal_places=2)]
Guests = Annotated[int, Field(gt=0, le=500)]


# Shared scheduling fields for a booking
class BookingSlot(BaseModel):
    booking_date: date
    start_time: time
    duration_hours: Hours
    guest_count: Guests
    special_requests: Annotated[Optional[str], Field(max_length=2000)] = None

    @field_validator("start_time")
    def local_time_only(cls, v: time) -> time:
        # Start times are wall-clock times in the chef's timezone
        if v.tzinfo is not None:
            raise ValueError("start_time must not carry a UTC offset")
        return v

    @field_validator("special_requests")
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


# Properties to receive on creation (from a customer)
class BookingCreate(BookingSlot):
    chef_id: int
    # customer_id is the authenticated user


# Reschedule payload; only pending bookings can be moved
class BookingReschedule(BookingSlot):
    pass


class BookingResponse(BaseModel):
    id: str
    chef_id: int
    customer_id: int
    booking_date: date
    start_time: time
    duration_hours: Decimal
    guest_count: int
    total_amount: Annotated[Decimal, Field()]
    special_requests: Optional[str] = None
    status: BookingStatus
    version: int
    created_at: datetime
    updated_at: datetime

    customer: Optional[UserResponse] = None

    model_config = {
        "from_attributes": True
    }
