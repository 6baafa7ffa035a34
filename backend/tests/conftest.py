import os
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv
import pytest

# Load environment variables for tests before the app reads its settings
os.environ.setdefault("PYTEST_RUN", "1")
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.models import ChefProfile, ChefStatus, User, UserType  # noqa: E402
from app.models.base import BaseModel  # noqa: E402
from app.services.booking_lifecycle import BookingLifecycleManager  # noqa: E402
from app.utils import redis_cache  # noqa: E402

# Every test runs "now" at this instant unless it passes its own clock
FIXED_NOW = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)


class RecordingSink:
    """Collects committed events instead of publishing them."""

    def __init__(self):
        self.events = []

    def publish(self, topic, envelope):
        self.events.append((topic, envelope))

    def types(self, topic=None):
        return [e["event_type"] for t, e in self.events if topic is None or t == topic]


@pytest.fixture(autouse=True)
def reset_redis_client(monkeypatch):
    """Each test starts with no cached Redis client."""
    monkeypatch.setattr(redis_cache, "_redis_client", None)
    yield


def setup_sessionmaker():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    return sessionmaker(bind=engine)


@pytest.fixture
def db():
    Session = setup_sessionmaker()
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def manager(db, sink):
    return BookingLifecycleManager(db, clock=lambda: FIXED_NOW, events=sink)


def add_customer(db, email='customer@test.com'):
    user = User(email=email, first_name='Casey', last_name='Customer', user_type=UserType.CUSTOMER)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_chef(db, email='chef@test.com', rate=Decimal('50.00'), status=ChefStatus.APPROVED, **profile):
    user = User(email=email, first_name='Remy', last_name='Chef', user_type=UserType.CHEF)
    db.add(user)
    db.commit()
    db.refresh(user)
    chef = ChefProfile(user_id=user.id, hourly_rate=rate, status=status, **profile)
    db.add(chef)
    db.commit()
    db.refresh(chef)
    return user


@pytest.fixture
def customer(db):
    return add_customer(db)


@pytest.fixture
def chef(db):
    return add_chef(db)
