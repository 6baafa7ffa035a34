import logging
import math
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import ACTIVE_STATUSES, Booking, ChefProfile, ChefStatus
from app.utils.errors import NotFoundError
from app.utils.redis_cache import cache_availability, get_cached_availability
from . import scheduling
from .booking_lifecycle import chef_zone

logger = logging.getLogger(__name__)


def _unbooked_slots(db: Session, chef: ChefProfile, day: date) -> List[str]:
    advertised = (chef.availability or {}).get(day.isoformat(), [])
    if not advertised:
        return []
    lookback = math.ceil(max(settings.MAX_BOOKING_HOURS, 24) / 24)
    bookings = (
        db.query(Booking)
        .filter(
            Booking.chef_id == chef.user_id,
            Booking.status.in_(list(ACTIVE_STATUSES)),
            Booking.booking_date >= day - timedelta(days=lookback),
            Booking.booking_date <= day,
        )
        .all()
    )
    return scheduling.open_slots(day, advertised, bookings)


def get_availability(db: Session, chef_id: int, day: date, now: Optional[datetime] = None) -> List[str]:
    """Open ``HH:MM`` slots for an approved chef on ``day``.

    Advertised slots come from the chef's availability map; any slot whose
    hour overlaps a pending or confirmed booking is removed. The booking-aware
    list is cached per chef and day; slots already in the past relative to
    ``now`` are dropped on every read.
    """
    chef = db.get(ChefProfile, chef_id)
    if chef is None or chef.status != ChefStatus.APPROVED:
        raise NotFoundError(f"Chef {chef_id} not found", {"chef_id": "not_found"})

    slots = get_cached_availability(chef_id, day)
    if slots is None:
        slots = _unbooked_slots(db, chef, day)
        cache_availability(chef_id, day, slots)
    else:
        logger.debug("availability cache hit chef=%s day=%s", chef_id, day)

    if now is None:
        return slots
    local_now = now.astimezone(chef_zone(chef)).replace(tzinfo=None)
    return [s for s in slots if datetime.combine(day, scheduling.parse_slot(s)) >= local_now]
