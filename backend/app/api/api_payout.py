from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models import ChefProfile, Withdrawal
from ..models.user import User
from ..schemas.payout import (
    PayoutCountryUpdate,
    PayoutMethodResponse,
    PayoutMethodVariant,
    PayoutSummary,
    WithdrawalCreate,
    WithdrawalResponse,
)
from ..services.booking_lifecycle import BookingLifecycleManager
from app.core.config import settings
from .dependencies import get_booking_manager, get_current_chef


router = APIRouter(tags=["payouts"])
logger = logging.getLogger(__name__)


@router.get("/me", response_model=PayoutSummary)
def my_payouts(
    db: Session = Depends(get_db),
    current_chef: User = Depends(get_current_chef),
):
    """Balance, saved payout methods and withdrawal history for the chef."""
    profile = db.get(ChefProfile, current_chef.id, populate_existing=True)
    withdrawals = (
        db.query(Withdrawal)
        .filter(Withdrawal.chef_id == current_chef.id)
        .order_by(Withdrawal.id.desc())
        .all()
    )
    return PayoutSummary(
        available_balance=profile.available_balance,
        currency=settings.DEFAULT_CURRENCY,
        country=profile.payout_country,
        saved_methods=[PayoutMethodResponse.model_validate(m) for m in profile.payout_methods],
        withdrawals=[WithdrawalResponse.model_validate(w) for w in withdrawals],
    )


@router.put("/me/country", response_model=PayoutSummary)
def set_country(
    body: PayoutCountryUpdate,
    db: Session = Depends(get_db),
    current_chef: User = Depends(get_current_chef),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    manager.set_payout_country(current_chef.id, body.country)
    return my_payouts(db=db, current_chef=current_chef)


@router.post("/me/methods", response_model=PayoutMethodResponse, status_code=status.HTTP_201_CREATED)
def add_method(
    method: PayoutMethodVariant = Body(..., discriminator="type"),
    current_chef: User = Depends(get_current_chef),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    return manager.add_payout_method(current_chef.id, method)


@router.delete("/me/methods/{method_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_method(
    method_id: int,
    current_chef: User = Depends(get_current_chef),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    manager.remove_payout_method(current_chef.id, method_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/me/withdrawals", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
def request_withdrawal(
    body: WithdrawalCreate,
    current_chef: User = Depends(get_current_chef),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Withdraw from the available balance to a saved payout method."""
    return manager.request_withdrawal(current_chef.id, body.amount, body.payout_method_id)
