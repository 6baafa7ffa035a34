from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError
from fastapi.testclient import TestClient

from app import crud, schemas
from app.main import app
from app.api.auth import create_access_token
from app.api.dependencies import get_db
from app.models import ChefStatus, CuisineType, User, UserType
from app.utils.errors import NotFoundError, PermissionDeniedError, ValidationError
from conftest import add_chef, add_customer


def test_search_only_lists_approved_chefs(db):
    add_chef(db, email="a@test.com", rate=Decimal("40"), cuisine_types=["italian"], location="Cape Town", rating=Decimal("4.80"))
    add_chef(db, email="b@test.com", rate=Decimal("90"), cuisine_types=["french", "italian"], specialties=["Pastry"], rating=Decimal("4.20"))
    add_chef(db, email="c@test.com", rate=Decimal("30"), cuisine_types=["italian"], status=ChefStatus.PENDING)

    results = crud.chef.search(db)
    assert [c.user.email for c in results] == ["a@test.com", "b@test.com"]

    assert [c.user.email for c in crud.chef.search(db, cuisine=CuisineType.FRENCH)] == ["b@test.com"]
    assert [c.user.email for c in crud.chef.search(db, max_price=Decimal("50"))] == ["a@test.com"]
    assert [c.user.email for c in crud.chef.search(db, min_rating=4.5)] == ["a@test.com"]
    assert [c.user.email for c in crud.chef.search(db, q="pastry")] == ["b@test.com"]
    assert [c.user.email for c in crud.chef.search(db, q="cape")] == ["a@test.com"]


def test_onboarding_creates_pending_profile(db):
    user = User(email="newchef@test.com", user_type=UserType.CHEF)
    db.add(user)
    db.commit()

    profile = crud.chef.create_profile(
        db,
        user,
        schemas.ChefProfileCreate(
            hourly_rate=Decimal("55.00"),
            cuisine_types=[CuisineType.MEXICAN],
            availability={"2030-01-05": ["18:00", "9:00", "18:00"]},
        ),
    )
    assert profile.status == ChefStatus.PENDING
    assert profile.cuisine_types == ["mexican"]
    assert profile.availability == {"2030-01-05": ["09:00", "18:00"]}
    with pytest.raises(NotFoundError):
        crud.chef.get_approved(db, user.id)
    with pytest.raises(ValidationError):
        crud.chef.create_profile(db, user, schemas.ChefProfileCreate())

    approved = crud.chef.set_status(db, user.id, ChefStatus.APPROVED)
    assert approved.verified is True
    assert crud.chef.get_approved(db, user.id).user_id == user.id


def test_customers_cannot_onboard_as_chef(db, customer):
    with pytest.raises(PermissionDeniedError):
        crud.chef.create_profile(db, customer, schemas.ChefProfileCreate())


def test_rate_change_does_not_touch_existing_bookings(manager, db, customer, chef):
    from datetime import date, time

    booking = manager.create_booking(customer.id, chef.id, date(2030, 4, 1), time(12, 0), 2, 2)
    crud.chef.update_profile(db, chef.id, schemas.ChefProfileUpdate(hourly_rate=Decimal("80.00")))
    db.refresh(booking)
    assert booking.total_amount == Decimal("100.00")


def test_invalid_availability_rejected():
    with pytest.raises(SchemaValidationError):
        schemas.ChefProfileUpdate(availability={"tomorrow": ["18:00"]})
    with pytest.raises(SchemaValidationError):
        schemas.ChefProfileUpdate(availability={"2030-01-05": ["6pm"]})


def test_admin_approves_over_http(db):
    admin = add_customer(db, email="admin@test.com")
    other = add_customer(db, email="other@test.com")
    pending = add_chef(db, email="pending@test.com", status=ChefStatus.PENDING)
    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    client = TestClient(app)
    try:
        assert client.get(f"/api/v1/chefs/{pending.id}").status_code == 404

        headers = {"Authorization": f"Bearer {create_access_token({'sub': other.id})}"}
        res = client.patch(f"/api/v1/chefs/{pending.id}/status", json={"status": "approved"}, headers=headers)
        assert res.status_code == 403

        headers = {"Authorization": f"Bearer {create_access_token({'sub': admin.id})}"}
        res = client.patch(f"/api/v1/chefs/{pending.id}/status", json={"status": "approved"}, headers=headers)
        assert res.status_code == 200
        assert res.json()["status"] == "approved"

        res = client.get("/api/v1/chefs/")
        assert [c["user_id"] for c in res.json()] == [pending.id]
    finally:
        app.dependency_overrides.clear()
