from sqlalchemy import Column, ForeignKey, Integer, Numeric, String

from .base import BaseModel


class BalanceCredit(BaseModel):
    """Ledger row written when a completed booking credits a chef balance.

    ``booking_id`` is unique so a booking can only ever be credited once.
    """

    __tablename__ = "balance_credits"

    id         = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, unique=True)
    chef_id    = Column(Integer, ForeignKey("chef_profiles.user_id"), nullable=False, index=True)
    amount     = Column(Numeric(10, 2), nullable=False)
