from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class EventResponse(BaseModel):
    id: int
    topic: str
    event_type: str
    payload: Dict[str, Any]
    created_at: datetime


class EventFeedResponse(BaseModel):
    items: List[EventResponse]
    next_after_id: Optional[int] = None
