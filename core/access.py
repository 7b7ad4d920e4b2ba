from dataclasses import dataclass
from enum import Enum

from core.errors import AuthorizationError


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller of a single request."""

    id: int
    name: str
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_user(cls, user) -> "Identity":
        return cls(
            id=user.id,
            name=user.full_name,
            email=user.email,
            role=Role(user.role),
        )


def ensure_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise AuthorizationError("Access denied. Admin privileges required.")


def ensure_owner(identity: Identity, owner_id: int) -> None:
    if identity.id != owner_id:
        raise AuthorizationError("You can only manage your own orders.")
