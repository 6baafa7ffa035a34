from datetime import date, time
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from app import crud, schemas
from app.models import ChefProfile, OutboxEvent
from app.utils.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError
from conftest import add_customer


def completed_booking(manager, customer, chef, day=10):
    booking = manager.create_booking(customer.id, chef.id, date(2030, 2, day), time(19, 0), 2, 4)
    manager.accept_booking(chef.id, booking.id)
    return manager.complete_booking(chef.id, booking.id)


def test_review_updates_chef_rating(manager, db, sink, customer, chef):
    first = completed_booking(manager, customer, chef, day=10)
    second = completed_booking(manager, customer, chef, day=11)

    crud.review.create_review(db, schemas.ReviewCreate(rating=5, comment="Superb"), customer.id, first.id, events=sink)
    crud.review.create_review(db, schemas.ReviewCreate(rating=4), customer.id, second.id, events=sink)

    profile = db.get(ChefProfile, chef.id)
    assert profile.total_reviews == 2
    assert profile.rating == Decimal("4.50")
    assert sink.types(f"chef:{chef.id}")[-1] == "review.created"
    assert db.query(OutboxEvent).filter(OutboxEvent.event_type == "review.created").count() == 2

    reviews = crud.review.get_reviews_by_chef(db, chef.id)
    assert {r.booking_id for r in reviews} == {first.id, second.id}


def test_review_requires_completed_booking(manager, db, customer, chef):
    booking = manager.create_booking(customer.id, chef.id, date(2030, 2, 10), time(19, 0), 2, 4)
    with pytest.raises(InvalidTransitionError):
        crud.review.create_review(db, schemas.ReviewCreate(rating=5), customer.id, booking.id)


def test_one_review_per_booking(manager, db, sink, customer, chef):
    booking = completed_booking(manager, customer, chef)
    crud.review.create_review(db, schemas.ReviewCreate(rating=3), customer.id, booking.id, events=sink)
    with pytest.raises(ValidationError) as exc:
        crud.review.create_review(db, schemas.ReviewCreate(rating=5), customer.id, booking.id, events=sink)
    assert exc.value.field_errors == {"booking_id": "duplicate"}
    assert db.get(ChefProfile, chef.id).rating == Decimal("3.00")


def test_only_the_customer_may_review(manager, db, customer, chef):
    booking = completed_booking(manager, customer, chef)
    stranger = add_customer(db, email="stranger@test.com")
    with pytest.raises(PermissionDeniedError):
        crud.review.create_review(db, schemas.ReviewCreate(rating=1), stranger.id, booking.id)
    with pytest.raises(PermissionDeniedError):
        crud.review.create_review(db, schemas.ReviewCreate(rating=1), chef.id, booking.id)
    with pytest.raises(NotFoundError):
        crud.review.create_review(db, schemas.ReviewCreate(rating=1), customer.id, "missing")


def test_rating_bounds():
    with pytest.raises(SchemaValidationError):
        schemas.ReviewCreate(rating=0)
    with pytest.raises(SchemaValidationError):
        schemas.ReviewCreate(rating=6)
