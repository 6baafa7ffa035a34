"""Who is acting.

The booking core never reads ambient session state; callers resolve an
:class:`Actor` through an :class:`IdentityProvider` and pass its id down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from app.models import User, UserType


@dataclass(frozen=True)
class Actor:
    user_id: int
    email: str
    user_type: UserType

    @property
    def is_chef(self) -> bool:
        return self.user_type == UserType.CHEF

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(user_id=user.id, email=user.email, user_type=user.user_type)


class IdentityProvider(Protocol):
    def get_current_actor(self) -> Optional[Actor]:
        """Return the authenticated actor, or ``None`` when anonymous."""
        ...
