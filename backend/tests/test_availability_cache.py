from datetime import date, datetime, time, timezone

import fakeredis
import pytest

from app.models import ChefStatus
from app.services.availability import get_availability
from app.utils import redis_cache
from app.utils.errors import NotFoundError
from conftest import add_chef

DAY = date(2030, 1, 5)
SLOTS = {DAY.isoformat(): ["17:00", "18:00", "19:00", "21:00"]}


@pytest.fixture
def fake(monkeypatch):
    client = fakeredis.FakeStrictRedis(decode_responses=True)
    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: client)
    return client


def test_booked_hours_are_removed(manager, db, customer, fake):
    chef = add_chef(db, email="slots@test.com", availability=SLOTS)
    assert get_availability(db, chef.id, DAY) == ["17:00", "18:00", "19:00", "21:00"]

    manager.create_booking(customer.id, chef.id, DAY, time(18, 0), 2, 2)
    assert get_availability(db, chef.id, DAY) == ["17:00", "21:00"]


def test_cache_is_used_and_invalidated(manager, db, customer, fake):
    chef = add_chef(db, email="slots@test.com", availability=SLOTS)
    get_availability(db, chef.id, DAY)
    assert redis_cache.get_cached_availability(chef.id, DAY) == ["17:00", "18:00", "19:00", "21:00"]

    booking = manager.create_booking(customer.id, chef.id, DAY, time(17, 0), 1, 2)
    assert redis_cache.get_cached_availability(chef.id, DAY) is None
    assert get_availability(db, chef.id, DAY) == ["18:00", "19:00", "21:00"]

    manager.cancel_booking(customer.id, booking.id)
    assert get_availability(db, chef.id, DAY) == ["17:00", "18:00", "19:00", "21:00"]


def test_past_slots_dropped_in_chef_timezone(db, fake):
    chef = add_chef(db, email="slots@test.com", availability=SLOTS, timezone="Africa/Johannesburg")
    # 15:30 UTC is 17:30 in Johannesburg
    now = datetime(2030, 1, 5, 15, 30, tzinfo=timezone.utc)
    assert get_availability(db, chef.id, DAY, now=now) == ["18:00", "19:00", "21:00"]
    # The cached entry still holds the whole day
    assert get_availability(db, chef.id, DAY) == ["17:00", "18:00", "19:00", "21:00"]


def test_booking_from_previous_evening_blocks_early_slots(manager, db, customer, fake):
    chef = add_chef(db, email="late@test.com", availability={DAY.isoformat(): ["00:00", "01:00", "02:00"]})
    manager.create_booking(customer.id, chef.id, date(2030, 1, 4), time(23, 0), 3, 2)
    assert get_availability(db, chef.id, DAY) == ["02:00"]


def test_unapproved_chef_has_no_availability(db, fake):
    chef = add_chef(db, email="pending@test.com", availability=SLOTS, status=ChefStatus.PENDING)
    with pytest.raises(NotFoundError):
        get_availability(db, chef.id, DAY)


def test_cache_errors_fall_back_to_database(monkeypatch, db):
    import redis

    class Broken:
        def get(self, key):
            raise redis.ConnectionError("down")

        def setex(self, key, ttl, value):
            raise redis.ConnectionError("down")

    monkeypatch.setattr(redis_cache, "get_redis_client", lambda: Broken())
    chef = add_chef(db, email="slots@test.com", availability=SLOTS)
    assert get_availability(db, chef.id, DAY) == ["17:00", "18:00", "19:00", "21:00"]
