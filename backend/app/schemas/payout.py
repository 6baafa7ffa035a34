from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from ..models.payout import PayoutMethodType, WithdrawalStatus

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^\+?[0-9][0-9 \-]{5,19}$")]

# Countries each payout rail can pay out to
SUPPORTED_COUNTRIES: Dict[PayoutMethodType, FrozenSet[str]] = {
    PayoutMethodType.BANK_TRANSFER: frozenset({"US", "CA", "UK", "AU", "EU"}),
    PayoutMethodType.PAYPAL: frozenset({"US", "CA", "UK", "AU", "EU", "MX", "BR", "IN"}),
    PayoutMethodType.VENMO: frozenset({"US"}),
    PayoutMethodType.MPESA: frozenset({"KE", "TZ", "GH"}),
    PayoutMethodType.UPI: frozenset({"IN"}),
    PayoutMethodType.ALIPAY: frozenset({"CN", "HK", "SG"}),
    PayoutMethodType.WECHAT_PAY: frozenset({"CN", "HK", "SG"}),
}

PAYOUT_COUNTRIES: FrozenSet[str] = frozenset().union(*SUPPORTED_COUNTRIES.values())


class BankTransfer(BaseModel):
    type: Literal["bank_transfer"]
    account_number: NonBlank
    routing_number: NonBlank
    account_name: NonBlank


class PayPal(BaseModel):
    type: Literal["paypal"]
    email: EmailStr


class Venmo(BaseModel):
    type: Literal["venmo"]
    phone_number: Phone
    username: NonBlank


class MPesa(BaseModel):
    type: Literal["mpesa"]
    phone_number: Phone


class UPI(BaseModel):
    type: Literal["upi"]
    upi_id: Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[A-Za-z0-9._\-]{2,256}@[A-Za-z]{2,64}$")]


class Alipay(BaseModel):
    type: Literal["alipay"]
    email: EmailStr


class WeChatPay(BaseModel):
    type: Literal["wechat_pay"]
    phone_number: Phone


PayoutMethodVariant = Union[BankTransfer, PayPal, Venmo, MPesa, UPI, Alipay, WeChatPay]
PayoutMethodDetails = Annotated[PayoutMethodVariant, Field(discriminator="type")]


class PayoutMethodResponse(BaseModel):
    id: int
    method_type: PayoutMethodType
    details: Dict[str, str]
    position: int
    created_at: datetime

    model_config = {"from_attributes": True}


class PayoutCountryUpdate(BaseModel):
    country: str

    @field_validator("country")
    def known_country(cls, v: str) -> str:
        code = v.strip().upper()
        if code not in PAYOUT_COUNTRIES:
            raise ValueError(f"Unsupported payout country: {v}")
        return code


class WithdrawalCreate(BaseModel):
    amount: Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=2)]
    payout_method_id: Optional[int] = None


class WithdrawalResponse(BaseModel):
    id: int
    amount: Decimal
    currency: str
    method_type: PayoutMethodType
    payout_method_id: Optional[int] = None
    status: WithdrawalStatus
    requested_at: datetime

    model_config = {"from_attributes": True}


class PayoutSummary(BaseModel):
    available_balance: Decimal
    currency: str
    country: Optional[str] = None
    saved_methods: List[PayoutMethodResponse]
    withdrawals: List[WithdrawalResponse]
