import threading
from datetime import date, time
from decimal import Decimal

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from app.models import BalanceCredit, Booking, BookingStatus, ChefProfile
from app.models.base import BaseModel
from app.services.booking_lifecycle import BookingLifecycleManager
from app.utils.errors import ConcurrentModificationError, ConflictError, InvalidTransitionError
from conftest import FIXED_NOW, RecordingSink, add_chef, add_customer

WORKERS = 4
JUNE_1 = date(2030, 6, 1)


def file_sessionmaker(tmp_path):
    # Separate connections per thread so each session runs its own transaction
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    BaseModel.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


def run_together(Session, action):
    """Run ``action(manager)`` on WORKERS threads released at the same moment."""
    barrier = threading.Barrier(WORKERS)
    outcomes = []
    lock = threading.Lock()

    def worker(n):
        db = Session()
        manager = BookingLifecycleManager(db, clock=lambda: FIXED_NOW, events=RecordingSink())
        try:
            barrier.wait()
            try:
                result = action(manager, n)
            except Exception as exc:  # collected for the assertions below
                result = exc
            with lock:
                outcomes.append(result)
        finally:
            db.close()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(WORKERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    assert len(outcomes) == WORKERS
    return outcomes


def test_overlapping_creates_from_separate_sessions_admit_one(tmp_path):
    Session = file_sessionmaker(tmp_path)
    setup = Session()
    chef = add_chef(setup)
    customers = [add_customer(setup, email=f'c{n}@test.com') for n in range(WORKERS)]
    chef_id = chef.id
    customer_ids = [c.id for c in customers]
    setup.close()

    def create(manager, n):
        # Each worker asks for a slot that overlaps every other worker's
        return manager.create_booking(
            actor_id=customer_ids[n],
            chef_id=chef_id,
            booking_date=JUNE_1,
            start_time=time(18, n * 10),
            duration_hours=2,
            guest_count=2,
        )

    outcomes = run_together(Session, create)

    booked = [o for o in outcomes if isinstance(o, Booking)]
    refused = [o for o in outcomes if isinstance(o, ConflictError)]
    assert len(booked) == 1, outcomes
    assert len(refused) == WORKERS - 1, outcomes

    check = Session()
    assert check.scalar(select(func.count()).select_from(Booking)) == 1
    check.close()


def test_concurrent_completion_credits_the_chef_once(tmp_path):
    Session = file_sessionmaker(tmp_path)
    setup = Session()
    chef = add_chef(setup, rate=Decimal('50.00'))
    customer = add_customer(setup)
    manager = BookingLifecycleManager(setup, clock=lambda: FIXED_NOW, events=RecordingSink())
    booking = manager.create_booking(
        actor_id=customer.id,
        chef_id=chef.id,
        booking_date=JUNE_1,
        start_time=time(18, 0),
        duration_hours=2,
        guest_count=2,
    )
    manager.accept_booking(chef.id, booking.id)
    chef_id, booking_id = chef.id, booking.id
    setup.close()

    outcomes = run_together(Session, lambda m, n: m.complete_booking(chef_id, booking_id))

    completed = [o for o in outcomes if isinstance(o, Booking)]
    lost = [o for o in outcomes if isinstance(o, (InvalidTransitionError, ConcurrentModificationError))]
    assert len(completed) == 1, outcomes
    assert len(lost) == WORKERS - 1, outcomes

    check = Session()
    assert check.scalar(select(func.count()).select_from(BalanceCredit)) == 1
    assert check.get(Booking, booking_id).status == BookingStatus.COMPLETED
    assert check.get(ChefProfile, chef_id).available_balance == Decimal('100.00')
    check.close()
