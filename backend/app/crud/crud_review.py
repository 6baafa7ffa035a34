import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..realtime import events as booking_events
from ..realtime.bus import EventSink, default_sink
from ..utils.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError
from ..utils.outbox import enqueue_outbox

logger = logging.getLogger(__name__)


class CRUDReview:
    def get_review_for_booking(self, db: Session, booking_id: str) -> Optional[models.Review]:
        return db.query(models.Review).filter(models.Review.booking_id == booking_id).first()

    def get_reviews_by_chef(
        self, db: Session, chef_id: int, skip: int = 0, limit: int = 100
    ) -> List[models.Review]:
        return (
            db.query(models.Review)
            .filter(models.Review.chef_id == chef_id)
            .order_by(models.Review.created_at.desc(), models.Review.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def _refresh_chef_rating(self, db: Session, chef_id: int) -> None:
        avg, count = (
            db.query(func.avg(models.Review.rating), func.count(models.Review.id))
            .filter(models.Review.chef_id == chef_id)
            .one()
        )
        chef = db.get(models.ChefProfile, chef_id)
        if chef is None:
            return
        chef.total_reviews = int(count or 0)
        chef.rating = (
            Decimal(str(avg)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if avg is not None else None
        )

    def create_review(
        self,
        db: Session,
        review: schemas.ReviewCreate,
        customer_id: int,
        booking_id: str,
        events: EventSink = default_sink,
    ) -> models.Review:
        """Store the customer's review of a completed booking.

        The chef's average rating and review count are recomputed in the
        same transaction.
        """
        db_booking = db.query(models.Booking).filter(models.Booking.id == booking_id).first()
        if not db_booking:
            raise NotFoundError(f"Booking {booking_id} not found", {"booking_id": "not_found"})
        if db_booking.customer_id != customer_id:
            raise PermissionDeniedError("Only the customer can review this booking", {"booking_id": "not_customer"})
        if db_booking.status != models.BookingStatus.COMPLETED:
            raise InvalidTransitionError(
                "Booking must be completed to leave a review.",
                {"status": db_booking.status.value},
            )
        if self.get_review_for_booking(db, booking_id) is not None:
            raise ValidationError("A review for this booking already exists.", {"booking_id": "duplicate"})

        db_review = models.Review(
            **review.model_dump(),
            customer_id=customer_id,
            booking_id=booking_id,
            chef_id=db_booking.chef_id,
        )
        db.add(db_review)
        try:
            db.flush()
        except IntegrityError as exc:
            db.rollback()
            raise ValidationError("A review for this booking already exists.", {"booking_id": "duplicate"}) from exc
        self._refresh_chef_rating(db, db_booking.chef_id)

        envelope = booking_events.build_event(
            booking_events.REVIEW_CREATED,
            {
                "booking_id": booking_id,
                "review_id": db_review.id,
                "chef_id": db_booking.chef_id,
                "rating": db_review.rating,
            },
        )
        topic = booking_events.chef_topic(db_booking.chef_id)
        enqueue_outbox(db, topic, booking_events.REVIEW_CREATED, envelope)
        db.commit()
        db.refresh(db_review)
        events.publish(topic, envelope)
        logger.info("review_created id=%s booking=%s rating=%s", db_review.id, booking_id, db_review.rating)
        return db_review


review = CRUDReview()
