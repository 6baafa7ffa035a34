import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..realtime import events as booking_events
from ..realtime.bus import EventSink, default_sink
from ..utils.errors import NotFoundError, PermissionDeniedError
from ..utils.outbox import enqueue_outbox

logger = logging.getLogger(__name__)


def get_booking_for_participant(db: Session, booking_id: str, user_id: int) -> models.Booking:
    """Load a booking the user takes part in, as chef or customer."""
    db_booking = db.query(models.Booking).filter(models.Booking.id == booking_id).first()
    if db_booking is None:
        raise NotFoundError(f"Booking {booking_id} not found", {"booking_id": "not_found"})
    if user_id not in (db_booking.chef_id, db_booking.customer_id):
        raise PermissionDeniedError("Not a participant of this booking", {"booking_id": "not_participant"})
    return db_booking


def create_message(
    db: Session,
    booking_id: str,
    sender_id: int,
    content: str,
    events: EventSink = default_sink,
) -> models.BookingMessage:
    db_booking = get_booking_for_participant(db, booking_id, sender_id)
    db_msg = models.BookingMessage(booking_id=booking_id, sender_id=sender_id, content=content)
    db.add(db_msg)
    db.flush()

    envelope = booking_events.build_event(
        booking_events.BOOKING_MESSAGE_CREATED,
        {"booking_id": booking_id, "message_id": db_msg.id, "sender_id": sender_id},
    )
    topics = booking_events.booking_topics(db_booking)
    for topic in topics:
        enqueue_outbox(db, topic, booking_events.BOOKING_MESSAGE_CREATED, envelope)
    db.commit()
    db.refresh(db_msg)
    for topic in topics:
        events.publish(topic, envelope)
    logger.debug("booking_message_created id=%s booking=%s sender=%s", db_msg.id, booking_id, sender_id)
    return db_msg


def get_messages_for_booking(
    db: Session,
    booking_id: str,
    user_id: int,
    after_id: Optional[int] = None,
    limit: int = 100,
) -> List[models.BookingMessage]:
    """Messages in chronological order, optionally only those after ``after_id``."""
    get_booking_for_participant(db, booking_id, user_id)
    query = db.query(models.BookingMessage).filter(models.BookingMessage.booking_id == booking_id)
    if after_id is not None:
        query = query.filter(models.BookingMessage.id > after_id)
    return query.order_by(models.BookingMessage.id.asc()).limit(limit).all()
