from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional
from datetime import date

from .. import models
from ..models.booking_status import ACTIVE_STATUSES, TERMINAL_STATUSES, BookingStatus

# Pseudo-statuses accepted by the booking list endpoints
UPCOMING = "upcoming"
PAST = "past"


class CRUDBooking:
    """Read-side queries for bookings. Writes go through the lifecycle manager."""

    def get_booking(self, db: Session, booking_id: str) -> Optional[models.Booking]:
        return db.query(models.Booking).filter(models.Booking.id == booking_id).first()

    def _filtered(self, query, status_filter: Optional[str], today: date):
        if not status_filter:
            return query
        if status_filter == UPCOMING:
            return query.filter(
                models.Booking.status.in_(list(ACTIVE_STATUSES)),
                models.Booking.booking_date >= today,
            )
        if status_filter == PAST:
            return query.filter(
                or_(
                    models.Booking.status.in_(list(TERMINAL_STATUSES)),
                    models.Booking.booking_date < today,
                )
            )
        return query.filter(models.Booking.status == BookingStatus(status_filter))

    def get_bookings_by_customer(
        self,
        db: Session,
        customer_id: int,
        status_filter: Optional[str] = None,
        today: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Booking]:
        query = db.query(models.Booking).filter(models.Booking.customer_id == customer_id)
        query = self._filtered(query, status_filter, today or date.today())
        return (
            query.order_by(models.Booking.booking_date.desc(), models.Booking.start_time.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_bookings_by_chef(
        self,
        db: Session,
        chef_id: int,
        status_filter: Optional[str] = None,
        today: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Booking]:
        query = (
            db.query(models.Booking)
            .options(selectinload(models.Booking.customer))
            .filter(models.Booking.chef_id == chef_id)
        )
        query = self._filtered(query, status_filter, today or date.today())
        return (
            query.order_by(models.Booking.booking_date.desc(), models.Booking.start_time.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


booking = CRUDBooking()
