from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class BookingMessage(BaseModel):
    """Chat message exchanged between a booking's chef and customer."""

    __tablename__ = "booking_messages"

    id         = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id  = Column(Integer, ForeignKey("users.id"), nullable=False)
    content    = Column(Text, nullable=False)

    booking = relationship("Booking", back_populates="messages")
    sender  = relationship("User")
