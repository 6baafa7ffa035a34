# backend/app/models/booking.py

import uuid

from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, Text, Time
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingStatus
from .types import CaseInsensitiveEnum


def _new_booking_id() -> str:
    return str(uuid.uuid4())


class Booking(BaseModel):
    __tablename__ = "bookings"

    id             = Column(String(36), primary_key=True, default=_new_booking_id)
    chef_id        = Column(Integer, ForeignKey("chef_profiles.user_id"), nullable=False, index=True)
    customer_id    = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_date   = Column(Date, nullable=False, index=True)
    start_time     = Column(Time, nullable=False)
    duration_hours = Column(Numeric(5, 2), nullable=False)
    guest_count    = Column(Integer, nullable=False)
    total_amount   = Column(Numeric(10, 2), nullable=False)
    special_requests = Column(Text, nullable=True)
    status         = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    # Compare-and-swap token; incremented on every write
    version        = Column(Integer, nullable=False, default=1)

    # Relationships
    chef     = relationship("ChefProfile", back_populates="bookings")
    customer = relationship("User", foreign_keys=[customer_id], back_populates="bookings_as_customer")
    review   = relationship("Review", back_populates="booking", uselist=False)
    messages = relationship(
        "BookingMessage",
        back_populates="booking",
        order_by="BookingMessage.id",
    )
