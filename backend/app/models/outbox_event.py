from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String, Text

from ..database import Base
from .base import utcnow


class OutboxEvent(Base):
    """Event row written in the same transaction as the change it describes.

    Ids are monotonic, so consumers that read ``id > cursor`` see a booking's
    events in commit order.
    """

    __tablename__ = "outbox_events"

    id            = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    topic         = Column(String(255), nullable=False)
    event_type    = Column(String(64), nullable=False)
    payload_json  = Column(Text, nullable=False)
    created_at    = Column(DateTime, nullable=False, default=utcnow)
    delivered_at  = Column(DateTime, nullable=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    last_error    = Column(Text, nullable=True)
    due_at        = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_outbox_undelivered_created", "delivered_at", "created_at"),
        Index("ix_outbox_topic_id", "topic", "id"),
    )
