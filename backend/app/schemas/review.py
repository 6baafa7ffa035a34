from pydantic import BaseModel, Field
from typing import Optional, Annotated
from datetime import datetime


class ReviewBase(BaseModel):
  rating: Annotated[int, Field(ge=1, le=5)]
  comment: Annotated[Optional[str], Field(max_length=2000)] = None


class ReviewCreate(ReviewBase):
  """Customer → chef review payload (booking-bound)."""
  pass


class ReviewResponse(ReviewBase):
  id: int
  booking_id: str
  chef_id: int
  customer_id: int
  created_at: datetime

  model_config = {"from_attributes": True}
