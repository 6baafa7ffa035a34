from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.chef_profile import ChefStatus, CuisineType
from ..services.scheduling import parse_slot
from .user import UserResponse

Rate = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]


class ChefProfileBase(BaseModel):
    bio: Optional[str] = None
    location: Optional[str] = None
    hourly_rate: Optional[Rate] = None
    specialties: Optional[List[str]] = None
    cuisine_types: Optional[List[CuisineType]] = None
    years_of_experience: Optional[Annotated[int, Field(ge=0, le=80)]] = None
    available_for_instant_booking: Optional[bool] = None
    availability: Optional[Dict[str, List[str]]] = None
    timezone: Optional[str] = None

    @field_validator("availability")
    def validate_availability(cls, v: Optional[Dict[str, List[str]]]):
        """Keys are ``YYYY-MM-DD`` dates, values ``HH:MM`` slot starts."""
        if v is None:
            return v
        cleaned: Dict[str, List[str]] = {}
        for day, slots in v.items():
            datetime.strptime(day, "%Y-%m-%d")
            cleaned[day] = sorted({parse_slot(s).strftime("%H:%M") for s in slots})
        return cleaned


class ChefProfileCreate(ChefProfileBase):
    pass


class ChefProfileUpdate(ChefProfileBase):
    pass


class ChefStatusUpdate(BaseModel):
    status: ChefStatus


class ChefProfileResponse(ChefProfileBase):
    user_id: int
    status: ChefStatus
    verified: bool
    rating: Optional[Decimal] = None
    total_reviews: int = 0
    created_at: datetime
    updated_at: datetime

    user: Optional[UserResponse] = None

    model_config = {"from_attributes": True}


class AvailabilityResponse(BaseModel):
    chef_id: int
    date: str
    slots: List[str]
