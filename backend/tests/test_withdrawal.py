from datetime import date, time
from decimal import Decimal

import pytest

from app.models import ChefProfile, PayoutMethodType, Withdrawal, WithdrawalStatus
from app.schemas.payout import BankTransfer, PayPal
from app.utils.errors import (
    InsufficientFundsError,
    NoPayoutMethodError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


def fund(db, chef, amount):
    profile = db.get(ChefProfile, chef.id)
    profile.available_balance = Decimal(amount)
    db.commit()


def current_balance(db, chef):
    profile = db.get(ChefProfile, chef.id)
    db.refresh(profile)
    return profile.available_balance


def add_bank(manager, chef):
    manager.set_payout_country(chef.id, "US")
    return manager.add_payout_method(
        chef.id,
        BankTransfer(type="bank_transfer", account_number="000123", routing_number="110000", account_name="Remy Chef"),
    )


def test_withdrawal_over_balance_fails_and_keeps_balance(manager, db, chef):
    fund(db, chef, "500.00")
    add_bank(manager, chef)
    with pytest.raises(InsufficientFundsError) as exc:
        manager.request_withdrawal(chef.id, Decimal("600"))
    assert exc.value.code == "insufficient_funds"
    assert current_balance(db, chef) == Decimal("500.00")
    assert db.query(Withdrawal).count() == 0


def test_withdrawal_requires_payout_method(manager, db, chef):
    fund(db, chef, "100.00")
    with pytest.raises(NoPayoutMethodError):
        manager.request_withdrawal(chef.id, Decimal("10"))
    assert current_balance(db, chef) == Decimal("100.00")


@pytest.mark.parametrize("amount", ["0", "-5", "abc"])
def test_withdrawal_amount_must_be_positive(manager, db, chef, amount):
    fund(db, chef, "100.00")
    add_bank(manager, chef)
    with pytest.raises(ValidationError):
        manager.request_withdrawal(chef.id, amount)


def test_withdrawal_defaults_to_first_method(manager, db, chef):
    fund(db, chef, "200.00")
    first = add_bank(manager, chef)
    manager.add_payout_method(chef.id, PayPal(type="paypal", email="remy@example.com"))

    withdrawal = manager.request_withdrawal(chef.id, Decimal("75.50"))
    assert withdrawal.status == WithdrawalStatus.PROCESSING
    assert withdrawal.payout_method_id == first.id
    assert withdrawal.method_type == PayoutMethodType.BANK_TRANSFER
    assert withdrawal.amount == Decimal("75.50")
    assert withdrawal.currency == "USD"
    assert current_balance(db, chef) == Decimal("124.50")


def test_withdrawal_to_chosen_method(manager, db, chef):
    fund(db, chef, "50.00")
    add_bank(manager, chef)
    paypal = manager.add_payout_method(chef.id, PayPal(type="paypal", email="remy@example.com"))
    withdrawal = manager.request_withdrawal(chef.id, Decimal("50"), payout_method_id=paypal.id)
    assert withdrawal.method_type == PayoutMethodType.PAYPAL
    assert current_balance(db, chef) == Decimal("0.00")


def test_withdrawal_to_unknown_method(manager, db, chef):
    fund(db, chef, "50.00")
    add_bank(manager, chef)
    with pytest.raises(NotFoundError):
        manager.request_withdrawal(chef.id, Decimal("5"), payout_method_id=9999)


def test_customers_cannot_withdraw(manager, customer):
    with pytest.raises(PermissionDeniedError):
        manager.request_withdrawal(customer.id, Decimal("5"))


def test_balance_equals_completions_minus_withdrawals(manager, db, customer, chef):
    add_bank(manager, chef)
    totals = []
    for day, hours in ((1, 2), (2, 3), (3, 1)):
        booking = manager.create_booking(customer.id, chef.id, date(2030, 6, day), time(18, 0), hours, 2)
        manager.accept_booking(chef.id, booking.id)
        manager.complete_booking(chef.id, booking.id)
        totals.append(booking.total_amount)

    withdrawn = [Decimal("60.00"), Decimal("45.25")]
    for amount in withdrawn:
        manager.request_withdrawal(chef.id, amount)

    expected = sum(totals) - sum(withdrawn)
    assert current_balance(db, chef) == expected
    with pytest.raises(InsufficientFundsError):
        manager.request_withdrawal(chef.id, expected + Decimal("0.01"))
    manager.request_withdrawal(chef.id, expected)
    assert current_balance(db, chef) == Decimal("0.00")
