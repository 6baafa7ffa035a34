import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..models.chef_profile import ChefStatus, CuisineType
from ..utils.errors import NotFoundError, PermissionDeniedError, ValidationError
from ..utils.redis_cache import invalidate_availability_cache

logger = logging.getLogger(__name__)


def _profile_data(profile_in: schemas.ChefProfileBase, **dump_kwargs) -> dict:
    data = profile_in.model_dump(**dump_kwargs)
    if data.get("cuisine_types") is not None:
        # JSON column stores plain strings
        data["cuisine_types"] = [c.value for c in data["cuisine_types"]]
    return data


class CRUDChef:
    def get_profile(self, db: Session, user_id: int) -> Optional[models.ChefProfile]:
        return db.query(models.ChefProfile).filter(models.ChefProfile.user_id == user_id).first()

    def get_approved(self, db: Session, chef_id: int) -> models.ChefProfile:
        chef = (
            db.query(models.ChefProfile)
            .options(selectinload(models.ChefProfile.user))
            .filter(
                models.ChefProfile.user_id == chef_id,
                models.ChefProfile.status == ChefStatus.APPROVED,
            )
            .first()
        )
        if chef is None:
            raise NotFoundError(f"Chef {chef_id} not found", {"chef_id": "not_found"})
        return chef

    def search(
        self,
        db: Session,
        cuisine: Optional[CuisineType] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_rating: Optional[float] = None,
        q: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[models.ChefProfile]:
        """Approved chefs matching the filters, best rated first.

        ``cuisine`` and ``q`` are matched in Python because the list columns
        are JSON; numeric filters run in SQL.
        """
        query = (
            db.query(models.ChefProfile)
            .options(selectinload(models.ChefProfile.user))
            .filter(models.ChefProfile.status == ChefStatus.APPROVED)
        )
        if min_price is not None:
            query = query.filter(models.ChefProfile.hourly_rate >= min_price)
        if max_price is not None:
            query = query.filter(models.ChefProfile.hourly_rate <= max_price)
        if min_rating is not None:
            query = query.filter(models.ChefProfile.rating >= min_rating)
        query = query.order_by(
            func.coalesce(models.ChefProfile.rating, 0).desc(),
            models.ChefProfile.total_reviews.desc(),
            models.ChefProfile.user_id.asc(),
        )

        needle = (q or "").strip().lower()
        results: List[models.ChefProfile] = []
        for chef in query.all():
            if cuisine is not None and cuisine.value not in (chef.cuisine_types or []):
                continue
            if needle:
                haystack = [chef.location or ""] + list(chef.specialties or [])
                if not any(needle in h.lower() for h in haystack):
                    continue
            results.append(chef)
        return results[skip : skip + limit]

    def create_profile(
        self, db: Session, user: models.User, profile_in: schemas.ChefProfileCreate
    ) -> models.ChefProfile:
        if user.user_type != models.UserType.CHEF:
            raise PermissionDeniedError("Only chef accounts can create a chef profile", {"user_type": "not_chef"})
        if self.get_profile(db, user.id) is not None:
            raise ValidationError("Chef profile already exists", {"user_id": "duplicate"})
        data = _profile_data(profile_in, exclude_none=True)
        profile = models.ChefProfile(user_id=user.id, status=ChefStatus.PENDING, **data)
        db.add(profile)
        db.commit()
        db.refresh(profile)
        logger.info("chef_profile_created chef=%s", user.id)
        return profile

    def update_profile(
        self, db: Session, user_id: int, patch: schemas.ChefProfileUpdate
    ) -> models.ChefProfile:
        """Apply a partial update. Existing bookings keep their locked price."""
        profile = self.get_profile(db, user_id)
        if profile is None:
            raise NotFoundError("Chef profile not found", {"user_id": "not_found"})
        data = _profile_data(patch, exclude_unset=True)
        for field, value in data.items():
            setattr(profile, field, value)
        db.commit()
        db.refresh(profile)
        if {"availability", "timezone"} & data.keys():
            invalidate_availability_cache(user_id)
        logger.info("chef_profile_updated chef=%s fields=%s", user_id, ",".join(sorted(data)))
        return profile

    def set_status(self, db: Session, chef_id: int, status: ChefStatus) -> models.ChefProfile:
        profile = self.get_profile(db, chef_id)
        if profile is None:
            raise NotFoundError(f"Chef {chef_id} not found", {"chef_id": "not_found"})
        profile.status = status
        if status == ChefStatus.APPROVED:
            profile.verified = True
        db.commit()
        db.refresh(profile)
        invalidate_availability_cache(chef_id)
        return profile


chef = CRUDChef()
