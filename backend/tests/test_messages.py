from datetime import date, time

import pytest
from pydantic import ValidationError as SchemaValidationError

from app.crud import crud_message
from app.models import OutboxEvent
from app.schemas.message import MessageCreate
from app.utils.errors import NotFoundError, PermissionDeniedError
from conftest import add_customer


@pytest.fixture
def booking(manager, customer, chef):
    return manager.create_booking(customer.id, chef.id, date(2030, 3, 1), time(18, 0), 2, 2)


def test_participants_can_chat(db, sink, booking, customer, chef):
    first = crud_message.create_message(db, booking.id, customer.id, "Any allergies to note?", events=sink)
    second = crud_message.create_message(db, booking.id, chef.id, "None, thanks", events=sink)

    history = crud_message.get_messages_for_booking(db, booking.id, chef.id)
    assert [m.id for m in history] == [first.id, second.id]
    assert crud_message.get_messages_for_booking(db, booking.id, customer.id, after_id=first.id) == [second]

    # Both sides are notified
    assert sink.types(f"chef:{chef.id}")[-1] == "booking_message.created"
    assert sink.types(f"customer:{customer.id}")[-1] == "booking_message.created"
    assert db.query(OutboxEvent).filter(OutboxEvent.event_type == "booking_message.created").count() == 4


def test_outsiders_cannot_read_or_write(db, booking):
    outsider = add_customer(db, email="nosy@test.com")
    with pytest.raises(PermissionDeniedError):
        crud_message.create_message(db, booking.id, outsider.id, "hello")
    with pytest.raises(PermissionDeniedError):
        crud_message.get_messages_for_booking(db, booking.id, outsider.id)
    with pytest.raises(NotFoundError):
        crud_message.get_messages_for_booking(db, "missing", outsider.id)


def test_message_content_rules():
    assert MessageCreate(content="  hi  ").content == "hi"
    with pytest.raises(SchemaValidationError):
        MessageCreate(content="   ")
    with pytest.raises(SchemaValidationError):
        MessageCreate(content="x" * 2001)
