from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from ..models.booking import Booking

BOOKING_CREATED = "booking.created"
BOOKING_ACCEPTED = "booking.accepted"
BOOKING_CANCELLED = "booking.cancelled"
BOOKING_COMPLETED = "booking.completed"
BOOKING_RESCHEDULED = "booking.rescheduled"
BOOKING_MESSAGE_CREATED = "booking_message.created"
REVIEW_CREATED = "review.created"


def chef_topic(chef_id: int) -> str:
    return f"chef:{chef_id}"


def customer_topic(customer_id: int) -> str:
    return f"customer:{customer_id}"


def build_event(event_type: str, data: dict[str, Any]) -> dict[str, Any]:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


def booking_changed(booking: Booking, event_type: str) -> dict[str, Any]:
    """``BookingChanged`` envelope for a booking's current state."""
    return build_event(
        event_type,
        {
            "booking_id": booking.id,
            "chef_id": booking.chef_id,
            "customer_id": booking.customer_id,
            "new_status": booking.status.value,
            "version": booking.version,
        },
    )


def booking_topics(booking: Booking) -> tuple[str, str]:
    return chef_topic(booking.chef_id), customer_topic(booking.customer_id)
