"""Booking lifecycle manager.

Owns booking creation, the status state machine, chef calendar conflict
checks and chef balance accounting::

    pending --accept--> confirmed --complete--> completed
    pending --cancel--> cancelled
    confirmed --cancel--> cancelled
    pending --reschedule--> pending

Every write is a compare-and-swap on ``(status, version)``. Schedule-changing
writes additionally lock the chef row so the overlap check and the write
happen in one serialized transaction.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Iterator, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import (
    ACTIVE_STATUSES,
    BalanceCredit,
    Booking,
    BookingStatus,
    ChefProfile,
    ChefStatus,
    PayoutMethod,
    PayoutMethodType,
    User,
    Withdrawal,
    WithdrawalStatus,
)
from app.models.base import utcnow
from app.realtime import events as booking_events
from app.realtime.bus import EventSink, default_sink
from app.schemas.payout import PAYOUT_COUNTRIES, SUPPORTED_COUNTRIES, PayoutMethodDetails
from app.services import scheduling
from app.utils.errors import (
    ConcurrentModificationError,
    ConflictError,
    InsufficientFundsError,
    InvalidTransitionError,
    NoPayoutMethodError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.utils.outbox import enqueue_outbox
from app.utils.redis_cache import invalidate_availability_cache
from app.utils.storage import with_storage_retry

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

Clock = Callable[[], datetime]

# Passed as ``special_requests`` to leave the stored text as it is
KEEP: Any = object()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def price_for(hourly_rate: Any, duration_hours: Any) -> Decimal:
    """Hourly rate times duration, rounded half-up to cents."""
    return to_money(Decimal(str(hourly_rate)) * Decimal(str(duration_hours)))


def chef_zone(chef: ChefProfile) -> tzinfo:
    name = (chef.timezone or settings.DEFAULT_TIMEZONE or "UTC").strip()
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("unknown chef timezone chef=%s tz=%s; using UTC", chef.user_id, name)
        return timezone.utc


class BookingLifecycleManager:
    """Performs booking state changes on behalf of an authenticated actor.

    ``clock`` returns the current instant as an aware datetime and ``events``
    receives committed ``BookingChanged`` envelopes; both are injectable for
    tests.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        self.db = db
        self.clock = clock or _utc_now
        self.events = events or default_sink
        self._pending_events: List[Tuple[str, dict[str, Any]]] = []
        self._touched_chefs: set[int] = set()

    # ------------------------------------------------------------------
    # Transactions and events
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        self._pending_events = []
        self._touched_chefs = set()
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._pending_events = []
            self._touched_chefs = set()
            raise
        self._after_commit()

    def _after_commit(self) -> None:
        for chef_id in self._touched_chefs:
            invalidate_availability_cache(chef_id)
        pending, self._pending_events = self._pending_events, []
        for topic, envelope in pending:
            self.events.publish(topic, envelope)

    def _emit(self, booking: Booking, event_type: str) -> None:
        envelope = booking_events.booking_changed(booking, event_type)
        for topic in booking_events.booking_topics(booking):
            enqueue_outbox(self.db, topic, event_type, envelope)
            self._pending_events.append((topic, envelope))
        self._touched_chefs.add(booking.chef_id)

    # ------------------------------------------------------------------
    # Lookups and guards
    # ------------------------------------------------------------------

    def _get_actor(self, actor_id: int) -> User:
        actor = self.db.get(User, actor_id)
        if actor is None or not actor.is_active:
            raise PermissionDeniedError("Unknown or inactive user", {"actor_id": "invalid"})
        return actor

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.db.get(Booking, booking_id, populate_existing=True)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found", {"booking_id": "not_found"})
        return booking

    def _get_own_profile(self, actor_id: int) -> ChefProfile:
        self._get_actor(actor_id)
        chef = self.db.get(ChefProfile, actor_id, populate_existing=True)
        if chef is None:
            raise PermissionDeniedError("Only chefs can manage payouts", {"actor_id": "not_a_chef"})
        return chef

    def _lock_chef_schedule(self, chef_id: int) -> Optional[ChefProfile]:
        """Take the chef-row write lock for the rest of the transaction.

        ``FOR UPDATE`` covers Postgres; the ``schedule_version`` bump makes
        SQLite take its database write lock before the overlap check reads.
        """
        result = self.db.execute(
            update(ChefProfile)
            .where(ChefProfile.user_id == chef_id)
            .values(
                schedule_version=ChefProfile.schedule_version + 1,
                updated_at=ChefProfile.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return (
            self.db.query(ChefProfile)
            .filter(ChefProfile.user_id == chef_id)
            .populate_existing()
            .with_for_update()
            .one()
        )

    def _active_bookings_near(self, chef_id: int, window: scheduling.Interval) -> List[Booking]:
        # A booking starting this many days earlier can still reach ``window``
        lookback = math.ceil(max(settings.MAX_BOOKING_HOURS, 24) / 24)
        return (
            self.db.query(Booking)
            .filter(
                Booking.chef_id == chef_id,
                Booking.status.in_(list(ACTIVE_STATUSES)),
                Booking.booking_date >= window.start.date() - timedelta(days=lookback),
                Booking.booking_date <= window.end.date(),
            )
            .all()
        )

    def _check_slot_free(self, chef_id: int, candidate: scheduling.Interval, exclude_id: Optional[str] = None) -> None:
        clash = scheduling.first_conflict(candidate, self._active_bookings_near(chef_id, candidate), exclude_id)
        if clash is not None:
            logger.info("slot_conflict chef=%s requested=%s clashes_with=%s", chef_id, candidate.start.isoformat(), clash.id)
            raise ConflictError(
                "The chef already has a booking that overlaps this time",
                {"start_time": "unavailable"},
            )

    def _validate_schedule(
        self,
        chef: ChefProfile,
        booking_date: date,
        start_time: time,
        duration_hours: Any,
        guest_count: int,
    ) -> Decimal:
        errors: dict[str, str] = {}
        try:
            duration = Decimal(str(duration_hours))
        except (InvalidOperation, ValueError):
            duration = Decimal(0)
        if not duration.is_finite() or duration <= 0:
            errors["duration_hours"] = "Duration must be positive"
        elif duration > settings.MAX_BOOKING_HOURS:
            errors["duration_hours"] = f"Duration cannot exceed {settings.MAX_BOOKING_HOURS} hours"
        if guest_count is None or guest_count <= 0:
            errors["guest_count"] = "Guest count must be positive"
        if start_time.tzinfo is not None:
            errors["start_time"] = "Start time must be local to the chef, without a UTC offset"
        else:
            start = datetime.combine(booking_date, start_time, tzinfo=chef_zone(chef))
            if start < self.clock():
                errors["booking_date"] = "Booking start must not be in the past"
        if errors:
            raise ValidationError("Invalid booking details", errors)
        return duration

    def _swap(self, booking: Booking, expected: BookingStatus, new: BookingStatus, **values: Any) -> None:
        """Compare-and-swap ``booking`` from ``expected`` to ``new``."""
        result = self.db.execute(
            update(Booking)
            .where(
                Booking.id == booking.id,
                Booking.status == expected,
                Booking.version == booking.version,
            )
            .values(status=new, version=Booking.version + 1, updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info("booking_cas_failed id=%s expected=%s version=%s", booking.id, expected.value, booking.version)
            raise ConcurrentModificationError(
                "The booking was changed by someone else. Reload and try again.",
                {"booking_id": "stale"},
            )
        self.db.refresh(booking)

    def _transition(
        self,
        booking: Booking,
        allowed_from: Tuple[BookingStatus, ...],
        new: BookingStatus,
    ) -> BookingStatus:
        current = booking.status
        if current not in allowed_from:
            raise InvalidTransitionError(
                f"Cannot move booking from {current.value} to {new.value}",
                {"status": current.value},
            )
        self._swap(booking, current, new)
        return current

    # ------------------------------------------------------------------
    # Booking operations
    # ------------------------------------------------------------------

    @with_storage_retry
    def create_booking(
        self,
        actor_id: int,
        chef_id: int,
        booking_date: date,
        start_time: time,
        duration_hours: Any,
        guest_count: int,
        special_requests: Optional[str] = None,
    ) -> Booking:
        self._get_actor(actor_id)
        with self._transaction():
            chef = self._lock_chef_schedule(chef_id)
            if chef is None or chef.status != ChefStatus.APPROVED:
                raise NotFoundError(f"Chef {chef_id} not found", {"chef_id": "not_found"})
            if chef.user_id == actor_id:
                raise ValidationError("Chefs cannot book themselves", {"chef_id": "self_booking"})
            if chef.hourly_rate is None:
                raise ValidationError("This chef has not set an hourly rate", {"chef_id": "no_rate"})
            duration = self._validate_schedule(chef, booking_date, start_time, duration_hours, guest_count)

            candidate = scheduling.booking_interval(booking_date, start_time, duration)
            self._check_slot_free(chef_id, candidate)

            booking = Booking(
                chef_id=chef_id,
                customer_id=actor_id,
                booking_date=booking_date,
                start_time=start_time,
                duration_hours=duration,
                guest_count=guest_count,
                total_amount=price_for(chef.hourly_rate, duration),
                special_requests=special_requests,
                status=BookingStatus.PENDING,
                version=1,
            )
            self.db.add(booking)
            self.db.flush()
            self._emit(booking, booking_events.BOOKING_CREATED)
        logger.info(
            "booking_created id=%s chef=%s customer=%s start=%s amount=%s",
            booking.id,
            chef_id,
            actor_id,
            candidate.start.isoformat(),
            booking.total_amount,
        )
        return booking

    @with_storage_retry
    def accept_booking(self, actor_id: int, booking_id: str) -> Booking:
        with self._transaction():
            booking = self._get_booking(booking_id)
            if booking.chef_id != actor_id:
                raise PermissionDeniedError("Only the chef can accept this booking", {"booking_id": "not_chef"})
            self._transition(booking, (BookingStatus.PENDING,), BookingStatus.CONFIRMED)
            self._emit(booking, booking_events.BOOKING_ACCEPTED)
        logger.info("booking_accepted id=%s chef=%s version=%s", booking.id, actor_id, booking.version)
        return booking

    @with_storage_retry
    def cancel_booking(self, actor_id: int, booking_id: str) -> Booking:
        with self._transaction():
            booking = self._get_booking(booking_id)
            if actor_id not in (booking.chef_id, booking.customer_id):
                raise PermissionDeniedError("Not a participant of this booking", {"booking_id": "not_participant"})
            previous = self._transition(
                booking,
                (BookingStatus.PENDING, BookingStatus.CONFIRMED),
                BookingStatus.CANCELLED,
            )
            self._emit(booking, booking_events.BOOKING_CANCELLED)
        logger.info(
            "booking_cancelled id=%s by=%s from=%s version=%s",
            booking.id,
            actor_id,
            previous.value,
            booking.version,
        )
        return booking

    @with_storage_retry
    def complete_booking(self, actor_id: int, booking_id: str) -> Booking:
        """Mark a confirmed booking completed and credit the chef once."""
        try:
            with self._transaction():
                booking = self._get_booking(booking_id)
                if booking.chef_id != actor_id:
                    raise PermissionDeniedError("Only the chef can complete this booking", {"booking_id": "not_chef"})
                self._transition(booking, (BookingStatus.CONFIRMED,), BookingStatus.COMPLETED)
                amount = to_money(booking.total_amount)
                self.db.add(BalanceCredit(booking_id=booking.id, chef_id=booking.chef_id, amount=amount))
                self.db.flush()
                self.db.execute(
                    update(ChefProfile)
                    .where(ChefProfile.user_id == booking.chef_id)
                    .values(available_balance=ChefProfile.available_balance + amount)
                    .execution_options(synchronize_session=False)
                )
                self._emit(booking, booking_events.BOOKING_COMPLETED)
        except IntegrityError as exc:
            # Ledger row already exists for this booking
            raise InvalidTransitionError(
                "Booking has already been completed",
                {"status": BookingStatus.COMPLETED.value},
            ) from exc
        logger.info("booking_completed id=%s chef=%s credited=%s", booking.id, actor_id, amount)
        return booking

    @with_storage_retry
    def reschedule_booking(
        self,
        actor_id: int,
        booking_id: str,
        booking_date: date,
        start_time: time,
        duration_hours: Any,
        guest_count: int,
        special_requests: Any = KEEP,
    ) -> Booking:
        """Move a pending booking; the price is recomputed from the current rate.

        ``special_requests`` is replaced when given; ``None`` clears it and
        :data:`KEEP` leaves it unchanged.
        """
        with self._transaction():
            booking = self._get_booking(booking_id)
            if booking.customer_id != actor_id:
                raise PermissionDeniedError("Only the customer can reschedule this booking", {"booking_id": "not_customer"})
            if booking.status != BookingStatus.PENDING:
                raise InvalidTransitionError(
                    "Only pending bookings can be rescheduled",
                    {"status": booking.status.value},
                )
            chef = self._lock_chef_schedule(booking.chef_id)
            if chef is None:
                raise NotFoundError(f"Chef {booking.chef_id} not found", {"chef_id": "not_found"})
            if chef.hourly_rate is None:
                raise ValidationError("This chef has not set an hourly rate", {"chef_id": "no_rate"})
            duration = self._validate_schedule(chef, booking_date, start_time, duration_hours, guest_count)

            candidate = scheduling.booking_interval(booking_date, start_time, duration)
            self._check_slot_free(booking.chef_id, candidate, exclude_id=booking.id)

            changes: dict[str, Any] = {
                "booking_date": booking_date,
                "start_time": start_time,
                "duration_hours": duration,
                "guest_count": guest_count,
                "total_amount": price_for(chef.hourly_rate, duration),
            }
            if special_requests is not KEEP:
                changes["special_requests"] = special_requests
            self._swap(booking, BookingStatus.PENDING, BookingStatus.PENDING, **changes)
            self._emit(booking, booking_events.BOOKING_RESCHEDULED)
        logger.info(
            "booking_rescheduled id=%s start=%s amount=%s version=%s",
            booking.id,
            candidate.start.isoformat(),
            booking.total_amount,
            booking.version,
        )
        return booking

    # ------------------------------------------------------------------
    # Balance and payouts
    # ------------------------------------------------------------------

    @with_storage_retry
    def request_withdrawal(self, actor_id: int, amount: Any, payout_method_id: Optional[int] = None) -> Withdrawal:
        """Move ``amount`` out of the chef's balance into a processing withdrawal."""
        try:
            value = to_money(amount)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError("Invalid amount", {"amount": "invalid"}) from exc
        if not value.is_finite() or value <= 0:
            raise ValidationError("Withdrawal amount must be positive", {"amount": "must_be_positive"})

        with self._transaction():
            chef = self._get_own_profile(actor_id)
            methods = list(chef.payout_methods)
            if not methods:
                raise NoPayoutMethodError("Add a payout method before withdrawing", {"payout_method_id": "missing"})
            if payout_method_id is None:
                method = methods[0]
            else:
                method = next((m for m in methods if m.id == payout_method_id), None)
                if method is None:
                    raise NotFoundError("Payout method not found", {"payout_method_id": "not_found"})

            result = self.db.execute(
                update(ChefProfile)
                .where(ChefProfile.user_id == actor_id, ChefProfile.available_balance >= value)
                .values(available_balance=ChefProfile.available_balance - value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InsufficientFundsError(
                    "Withdrawal amount exceeds the available balance",
                    {"amount": "insufficient_funds"},
                )
            withdrawal = Withdrawal(
                chef_id=actor_id,
                payout_method_id=method.id,
                method_type=method.method_type,
                amount=value,
                currency=settings.DEFAULT_CURRENCY,
                status=WithdrawalStatus.PROCESSING,
            )
            self.db.add(withdrawal)
            self.db.flush()
        self.db.refresh(chef)
        logger.info(
            "withdrawal_requested id=%s chef=%s amount=%s method=%s balance=%s",
            withdrawal.id,
            actor_id,
            value,
            method.method_type.value,
            chef.available_balance,
        )
        return withdrawal

    @with_storage_retry
    def set_payout_country(self, actor_id: int, country: str) -> ChefProfile:
        code = (country or "").strip().upper()
        if code not in PAYOUT_COUNTRIES:
            raise ValidationError(f"Unsupported payout country: {country}", {"country": "unsupported"})
        with self._transaction():
            chef = self._get_own_profile(actor_id)
            chef.payout_country = code
        self.db.refresh(chef)
        logger.info("payout_country_set chef=%s country=%s", actor_id, code)
        return chef

    @with_storage_retry
    def add_payout_method(self, actor_id: int, method: PayoutMethodDetails) -> PayoutMethod:
        with self._transaction():
            chef = self._get_own_profile(actor_id)
            if not chef.payout_country:
                raise ValidationError("Set a payout country first", {"country": "missing"})
            method_type = PayoutMethodType(method.type)
            if chef.payout_country not in SUPPORTED_COUNTRIES[method_type]:
                raise ValidationError(
                    f"{method_type.value} is not available in {chef.payout_country}",
                    {"type": "unsupported_in_country"},
                )
            last = (
                self.db.query(func.max(PayoutMethod.position))
                .filter(PayoutMethod.chef_id == actor_id)
                .scalar()
            )
            row = PayoutMethod(
                chef_id=actor_id,
                method_type=method_type,
                details=method.model_dump(mode="json", exclude={"type"}),
                position=0 if last is None else last + 1,
            )
            self.db.add(row)
            self.db.flush()
        self.db.refresh(row)
        logger.info("payout_method_added id=%s chef=%s type=%s", row.id, actor_id, row.method_type.value)
        return row

    @with_storage_retry
    def remove_payout_method(self, actor_id: int, method_id: int) -> None:
        with self._transaction():
            self._get_own_profile(actor_id)
            row = (
                self.db.query(PayoutMethod)
                .filter(PayoutMethod.id == method_id, PayoutMethod.chef_id == actor_id)
                .first()
            )
            if row is None:
                raise NotFoundError("Payout method not found", {"payout_method_id": "not_found"})
            self.db.delete(row)
        logger.info("payout_method_removed id=%s chef=%s", method_id, actor_id)
