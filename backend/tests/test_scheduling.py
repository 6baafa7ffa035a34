from datetime import date, datetime, time
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services import scheduling


def booking(id_, day, start, hours):
    return SimpleNamespace(id=id_, booking_date=day, start_time=start, duration_hours=Decimal(hours))


def test_touching_intervals_do_not_overlap():
    a = scheduling.booking_interval(date(2030, 1, 1), time(18, 0), 2)
    b = scheduling.booking_interval(date(2030, 1, 1), time(20, 0), 1)
    assert not a.overlaps(b)
    assert not b.overlaps(a)


def test_interval_crosses_midnight():
    late = scheduling.booking_interval(date(2030, 1, 1), time(23, 0), Decimal("2.5"))
    assert late.end == datetime(2030, 1, 2, 1, 30)
    early = scheduling.booking_interval(date(2030, 1, 2), time(1, 0), 1)
    assert late.overlaps(early)


def test_first_conflict_skips_excluded_booking():
    existing = [booking("a", date(2030, 1, 1), time(18, 0), "3")]
    candidate = scheduling.booking_interval(date(2030, 1, 1), time(19, 0), 1)
    assert scheduling.first_conflict(candidate, existing).id == "a"
    assert scheduling.first_conflict(candidate, existing, exclude_id="a") is None


def test_open_slots():
    day = date(2030, 1, 5)
    busy = [booking("a", day, time(18, 30), "1")]
    slots = ["19:00", "17:00", "18:00", "17:00"]
    assert scheduling.open_slots(day, slots, busy) == ["17:00"]
    assert scheduling.open_slots(day, slots, [], not_before=datetime(2030, 1, 5, 17, 30)) == ["18:00", "19:00"]


def test_parse_slot():
    assert scheduling.parse_slot(" 9:05 ") == time(9, 5)
    with pytest.raises(ValueError):
        scheduling.parse_slot("25:00")
