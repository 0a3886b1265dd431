# backend/cabinbook/auth.py
"""
Actor resolution.

Authentication happens upstream: the gateway verifies the session and
forwards only the normalized principal as headers:

    X-Actor-Id    opaque user id
    X-Actor-Role  professional | provider | owner | admin

The backend trusts these headers and never authenticates on its own.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

PROFESSIONAL_ROLES = frozenset({"professional", "provider"})
OWNER_ROLES = frozenset({"owner"})


@dataclass(frozen=True)
class Actor:
    id: Optional[str]
    role: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id)

    @property
    def is_professional(self) -> bool:
        return self.is_authenticated and self.role in PROFESSIONAL_ROLES

    @property
    def is_owner(self) -> bool:
        return self.is_authenticated and self.role in OWNER_ROLES


ANONYMOUS = Actor(id=None, role=None)


def get_current_actor(
    x_actor_id: str | None = Header(None),
    x_actor_role: str | None = Header(None),
) -> Actor:
    if not x_actor_id:
        return ANONYMOUS
    role = x_actor_role.strip().lower() if x_actor_role else None
    return Actor(id=x_actor_id.strip(), role=role)
