"""
Caller identity as established by the upstream authentication layer.
"""

from dataclasses import dataclass

from rentals.models.base.enums import UserType


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: UserType = UserType.RENTER

    @property
    def is_admin(self) -> bool:
        return self.role == UserType.ADMIN

    def is_user(self, user_id: str) -> bool:
        return self.user_id == user_id
