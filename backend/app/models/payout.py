# backend/app/models/payout.py

import enum

from sqlalchemy import Column, ForeignKey, Integer, JSON, Numeric, String
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class PayoutMethodType(str, enum.Enum):
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    VENMO = "venmo"
    MPESA = "mpesa"
    UPI = "upi"
    ALIPAY = "alipay"
    WECHAT_PAY = "wechat_pay"


class WithdrawalStatus(str, enum.Enum):
    PROCESSING = "processing"


class PayoutMethod(BaseModel):
    """A saved payout destination. ``details`` holds the variant's fields."""

    __tablename__ = "payout_methods"

    id          = Column(Integer, primary_key=True, index=True)
    chef_id     = Column(Integer, ForeignKey("chef_profiles.user_id", ondelete="CASCADE"), nullable=False, index=True)
    method_type = Column(CaseInsensitiveEnum(PayoutMethodType, name="payoutmethodtype"), nullable=False)
    details     = Column(JSON, nullable=False)
    position    = Column(Integer, nullable=False, default=0)

    chef = relationship("ChefProfile", back_populates="payout_methods")


class Withdrawal(BaseModel):
    __tablename__ = "withdrawals"

    id               = Column(Integer, primary_key=True, index=True)
    chef_id          = Column(Integer, ForeignKey("chef_profiles.user_id"), nullable=False, index=True)
    # Kept as a plain column: methods may be removed after a withdrawal
    payout_method_id = Column(Integer, nullable=True)
    method_type      = Column(CaseInsensitiveEnum(PayoutMethodType, name="payoutmethodtype"), nullable=False)
    amount           = Column(Numeric(12, 2), nullable=False)
    currency         = Column(String(3), nullable=False)
    status           = Column(
        CaseInsensitiveEnum(WithdrawalStatus, name="withdrawalstatus"),
        nullable=False,
        default=WithdrawalStatus.PROCESSING,
    )

    chef = relationship("ChefProfile", back_populates="withdrawals")

    @property
    def requested_at(self):
        return self.created_at
