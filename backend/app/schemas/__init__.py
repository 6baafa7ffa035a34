from .user import UserBase, UserResponse, TokenData
from .booking import BookingSlot, BookingCreate, BookingReschedule, BookingResponse
from .chef import (
    ChefProfileBase,
    ChefProfileCreate,
    ChefProfileUpdate,
    ChefProfileResponse,
    ChefStatusUpdate,
    AvailabilityResponse,
)
from .review import ReviewBase, ReviewCreate, ReviewResponse
from .message import MessageCreate, MessageResponse, MessageListResponse
from .payout import (
    PayoutMethodDetails,
    PayoutMethodResponse,
    PayoutCountryUpdate,
    PayoutSummary,
    WithdrawalCreate,
    WithdrawalResponse,
)
from .event import EventResponse, EventFeedResponse

__all__ = [
    "UserBase",
    "UserResponse",
    "TokenData",
    "BookingSlot",
    "BookingCreate",
    "BookingReschedule",
    "BookingResponse",
    "ChefProfileBase",
    "ChefProfileCreate",
    "ChefProfileUpdate",
    "ChefProfileResponse",
    "ChefStatusUpdate",
    "AvailabilityResponse",
    "ReviewBase",
    "ReviewCreate",
    "ReviewResponse",
    "MessageCreate",
    "MessageResponse",
    "MessageListResponse",
    "PayoutMethodDetails",
    "PayoutMethodResponse",
    "PayoutCountryUpdate",
    "PayoutSummary",
    "WithdrawalCreate",
    "WithdrawalResponse",
    "EventResponse",
    "EventFeedResponse",
]
