from sqlalchemy import Column, Integer, Text, ForeignKey, String
from sqlalchemy.orm import relationship
from .base import BaseModel


class Review(BaseModel):
    __tablename__ = "reviews"

    id          = Column(Integer, primary_key=True, index=True)
    booking_id  = Column(String(36), ForeignKey("bookings.id"), nullable=False, unique=True)
    chef_id     = Column(Integer, ForeignKey("chef_profiles.user_id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    rating      = Column(Integer, nullable=False)
    comment     = Column(Text, nullable=True)

    # Relationships
    #   Each Review is attached to exactly one Booking
    booking = relationship("Booking", back_populates="review")

    #   Each Review belongs to exactly one ChefProfile
    chef = relationship("ChefProfile", back_populates="reviews")

    customer = relationship("User")
