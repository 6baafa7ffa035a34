from .user import User, UserType
from .chef_profile import ChefProfile, ChefStatus, CuisineType
from .booking import Booking
from .booking_status import BookingStatus, ACTIVE_STATUSES, TERMINAL_STATUSES
from .balance_credit import BalanceCredit
from .payout import PayoutMethod, PayoutMethodType, Withdrawal, WithdrawalStatus
from .review import Review
from .message import BookingMessage
from .outbox_event import OutboxEvent

__all__ = [
    "User",
    "UserType",
    "ChefProfile",
    "ChefStatus",
    "CuisineType",
    "Booking",
    "BookingStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "BalanceCredit",
    "PayoutMethod",
    "PayoutMethodType",
    "Withdrawal",
    "WithdrawalStatus",
    "Review",
    "BookingMessage",
    "OutboxEvent",
]
