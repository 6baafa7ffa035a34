# backend/app/models/user.py

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel
from .types import CaseInsensitiveEnum
import enum


class UserType(str, enum.Enum):
    """Enumeration of all supported user roles."""

    CUSTOMER = "customer"
    CHEF = "chef"


class User(BaseModel):
    """Account mirrored from the external identity provider."""

    __tablename__ = "users"

    id           = Column(Integer, primary_key=True, index=True)
    email        = Column(String, unique=True, index=True, nullable=False)
    first_name   = Column(String, nullable=True)
    last_name    = Column(String, nullable=True)
    avatar_url   = Column(String, nullable=True)
    user_type    = Column(CaseInsensitiveEnum(UserType, name="usertype"), nullable=False)
    is_active    = Column(Boolean, default=True)

    # If this user is a chef, they get exactly one profile here:
    chef_profile = relationship(
        "ChefProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    # All bookings where this user is the customer
    bookings_as_customer = relationship(
        "Booking",
        foreign_keys="Booking.customer_id",
        back_populates="customer",
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p).strip()
