from dataclasses import dataclass
from typing import Optional, Union

from api.errors import Forbidden
from db.models.user import ROLE_ADMIN


@dataclass(frozen=True)
class SessionCredential:
    token: str


@dataclass(frozen=True)
class ApiKeyCredential:
    value: str


Credential = Union[SessionCredential, ApiKeyCredential]


@dataclass(frozen=True)
class Identity:
    """Who is calling, as resolved by the authorization gate.

    Session callers carry a role; API-key callers carry the key id instead.
    """

    subject_id: int
    role: Optional[str] = None
    api_key_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def require_role(identity: Identity, role: str) -> Identity:
    if identity.role != role:
        raise Forbidden(f"{role.capitalize()} access required")
    return identity


def ensure_owner(identity: Identity, owner_id: Optional[int]) -> Identity:
    """Admins bypass ownership checks."""
    if identity.is_admin or identity.subject_id == owner_id:
        return identity
    raise Forbidden("Not allowed to act on this resource")
