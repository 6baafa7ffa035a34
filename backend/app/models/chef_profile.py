# backend/app/models/chef_profile.py

import enum

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class ChefStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CuisineType(str, enum.Enum):
    ITALIAN = "italian"
    FRENCH = "french"
    INDIAN = "indian"
    CHINESE = "chinese"
    JAPANESE = "japanese"
    MEXICAN = "mexican"
    MEDITERRANEAN = "mediterranean"
    AMERICAN = "american"
    OTHER = "other"


class ChefProfile(BaseModel):
    """A chef's public profile plus the embedded payout balance."""

    __tablename__ = "chef_profiles"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        nullable=False,
        index=True,
    )
    bio = Column(Text, nullable=True)
    location = Column(String, index=True, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    specialties = Column(JSON, nullable=True)
    cuisine_types = Column(JSON, nullable=True)
    years_of_experience = Column(Integer, nullable=True)
    status = Column(
        CaseInsensitiveEnum(ChefStatus, name="chefstatus"),
        nullable=False,
        default=ChefStatus.PENDING,
        index=True,
    )
    verified = Column(Boolean, nullable=False, default=False)
    available_for_instant_booking = Column(Boolean, nullable=False, default=False)
    # {"2030-01-01": ["18:00", "19:00"], ...}
    availability = Column(JSON, nullable=True)
    timezone = Column(String, nullable=True)

    rating = Column(Numeric(3, 2), nullable=True)
    total_reviews = Column(Integer, nullable=False, default=0)

    # Balance accounting. Only completion credits and withdrawals move it.
    available_balance = Column(Numeric(12, 2), nullable=False, default=0)
    payout_country = Column(String(2), nullable=True)
    # Bumped inside every schedule-changing transaction to serialize writers
    schedule_version = Column(Integer, nullable=False, default=0)

    # Relationships
    user = relationship("User", back_populates="chef_profile")
    bookings = relationship("Booking", back_populates="chef")
    payout_methods = relationship(
        "PayoutMethod",
        back_populates="chef",
        order_by="PayoutMethod.position",
        cascade="all, delete-orphan",
    )
    withdrawals = relationship(
        "Withdrawal",
        back_populates="chef",
        order_by="Withdrawal.id",
    )
    reviews = relationship("Review", back_populates="chef")
