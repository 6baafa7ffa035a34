from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..database import get_db
from ..models.user import User, UserType
from ..services.booking_lifecycle import BookingLifecycleManager
from ..services.identity import Actor, IdentityProvider
from app.core.config import settings
from .auth import oauth2_scheme, decode_access_token


class JWTIdentityProvider:
    """Resolve the acting user from a bearer token."""

    def __init__(self, token: Optional[str], db: Session):
        self.token = token
        self.db = db
        self._user: Optional[User] = None

    def get_current_user(self) -> Optional[User]:
        if self._user is None and self.token:
            data = decode_access_token(self.token)
            if data is None or data.user_id is None:
                return None
            self._user = (
                self.db.query(User)
                .options(joinedload(User.chef_profile))
                .filter(User.id == data.user_id)
                .first()
            )
        return self._user

    def get_current_actor(self) -> Optional[Actor]:
        user = self.get_current_user()
        if user is None or not user.is_active:
            return None
        return Actor.from_user(user)


def get_identity_provider(
    token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> JWTIdentityProvider:
    return JWTIdentityProvider(token, db)


def get_current_user(identity: JWTIdentityProvider = Depends(get_identity_provider)) -> User:
    user = identity.get_current_user()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user


def get_current_actor(identity: IdentityProvider = Depends(get_identity_provider)) -> Actor:
    """The authenticated actor the booking core acts on behalf of."""
    actor = identity.get_current_actor()
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


def get_current_chef(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the current user is a chef with a profile."""
    if current_user.user_type != UserType.CHEF:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not a chef.",
        )
    if not current_user.chef_profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Chef profile does not exist. Please create one.",
        )
    return current_user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.email.lower() not in settings.admin_emails:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def get_booking_manager(db: Session = Depends(get_db)) -> BookingLifecycleManager:
    return BookingLifecycleManager(db)
