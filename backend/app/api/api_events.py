from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import get_db
from ..models.base import utcnow
from ..models.user import User
from ..realtime.events import chef_topic, customer_topic
from ..schemas.event import EventFeedResponse, EventResponse
from ..utils.json import loads
from ..utils.outbox import list_events
from .dependencies import get_current_user

router = APIRouter(tags=["events"])


@router.get("/", response_model=EventFeedResponse)
def read_events(
    after_id: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Change feed for the caller's topics in commit order.

    Pass the returned ``next_after_id`` back as ``after_id`` to resume.
    Events younger than ``EVENT_FEED_SETTLE_SECONDS`` are held for a later
    poll.
    """
    topics = [customer_topic(current_user.id)]
    if current_user.chef_profile is not None:
        topics.append(chef_topic(current_user.id))
    settled_before = utcnow() - timedelta(seconds=settings.EVENT_FEED_SETTLE_SECONDS)
    rows = list_events(db, topics, after_id=after_id, limit=limit, settled_before=settled_before)
    next_after_id: Optional[int] = rows[-1].id if rows else after_id
    return EventFeedResponse(
        items=[
            EventResponse(
                id=r.id,
                topic=r.topic,
                event_type=r.event_type,
                payload=loads(r.payload_json),
                created_at=r.created_at,
            )
            for r in rows
        ],
        next_after_id=next_after_id,
    )
