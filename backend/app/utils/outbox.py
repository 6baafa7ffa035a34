from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models.outbox_event import OutboxEvent
from .json import dumps

logger = logging.getLogger(__name__)


def enqueue_outbox(
    db: Session,
    topic: str,
    event_type: str,
    payload: dict[str, Any],
    due_at: Optional[datetime] = None,
) -> OutboxEvent:
    """Add an outbox event row to the caller's transaction.

    Nothing is committed here: the row becomes visible together with the
    change it describes, or not at all.
    """
    payload_str = dumps(payload)
    row = OutboxEvent(topic=topic, event_type=event_type, payload_json=payload_str, due_at=due_at)
    db.add(row)
    logger.debug("outbox_enqueue topic=%s type=%s bytes=%s", topic, event_type, len(payload_str))
    return row


def list_events(
    db: Session,
    topics: Iterable[str],
    after_id: int = 0,
    limit: int = 100,
    settled_before: Optional[datetime] = None,
) -> List[OutboxEvent]:
    """Return events on ``topics`` with ``id > after_id`` in id order.

    Ids are allocated at insert time, so a lower id can still be uncommitted
    when a higher one is already visible. With ``settled_before`` the result
    stops at the first row created after that instant; later rows wait for
    the next poll instead of letting the caller's cursor skip the gap.
    """
    rows = (
        db.query(OutboxEvent)
        .filter(OutboxEvent.topic.in_(list(topics)), OutboxEvent.id > after_id)
        .order_by(OutboxEvent.id.asc())
        .limit(limit)
        .all()
    )
    if settled_before is None:
        return rows
    settled: List[OutboxEvent] = []
    for row in rows:
        if row.created_at > settled_before:
            break
        settled.append(row)
    return settled
