from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.chef_profile import CuisineType
from ..models.user import User
from ..schemas.chef import (
    AvailabilityResponse,
    ChefProfileCreate,
    ChefProfileResponse,
    ChefProfileUpdate,
    ChefStatusUpdate,
)
from ..crud import crud_chef
from ..services.availability import get_availability
from .dependencies import get_current_admin, get_current_user

router = APIRouter(tags=["chefs"])


@router.get("/", response_model=List[ChefProfileResponse])
def search_chefs(
    db: Session = Depends(get_db),
    cuisine: Optional[CuisineType] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    q: Optional[str] = Query(None, max_length=100, description="Location or specialty"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    """List approved chefs, best rated first."""
    return crud_chef.chef.search(
        db,
        cuisine=cuisine,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        q=q,
        skip=skip,
        limit=limit,
    )


@router.post("/me", response_model=ChefProfileResponse, status_code=status.HTTP_201_CREATED)
def create_my_profile(
    profile_in: ChefProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Start chef onboarding. New profiles wait for admin approval."""
    return crud_chef.chef.create_profile(db, current_user, profile_in)


@router.patch("/me", response_model=ChefProfileResponse)
def update_my_profile(
    patch: ChefProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud_chef.chef.update_profile(db, current_user.id, patch)


@router.get("/{chef_id}", response_model=ChefProfileResponse)
def read_chef(chef_id: int, db: Session = Depends(get_db)):
    return crud_chef.chef.get_approved(db, chef_id)


@router.get("/{chef_id}/availability", response_model=AvailabilityResponse)
def read_availability(
    chef_id: int,
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    slots = get_availability(db, chef_id, day, now=datetime.now(timezone.utc))
    return AvailabilityResponse(chef_id=chef_id, date=day.isoformat(), slots=slots)


@router.patch("/{chef_id}/status", response_model=ChefProfileResponse)
def update_chef_status(
    chef_id: int,
    body: ChefStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    """Approve or reject a chef (admin allowlist only)."""
    return crud_chef.chef.set_status(db, chef_id, body.status)
