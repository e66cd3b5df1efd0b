"""Caller Identity — the two identity variants every permission check receives.

Invariants:
    - Guests have id=None, role=USER and a 7-digit numeric username
    - Guests never carry the admin role, whatever the caller asks for
    - Authenticated identities are built only from a Role Store profile row
    - Identity is frozen: a check can never mutate the caller it was given

Design Decisions:
    - One frozen dataclass with an is_guest flag instead of two classes, so the
      permission engine reads identity.username/identity.is_admin uniformly
    - Guest ownership is username equality only (weak-trust, self-asserted)
"""

from dataclasses import dataclass
from uuid import UUID

from fellowship.core.domain_types import GUEST_USERNAME_PATTERN, Role


@dataclass(frozen=True)
class Identity:
    """Resolved caller: authenticated profile or ephemeral guest."""
    id: UUID | None
    username: str
    role: Role = Role.USER
    is_guest: bool = False

    @property
    def is_admin(self) -> bool:
        return not self.is_guest and self.role == Role.ADMIN

    @property
    def is_authenticated(self) -> bool:
        return not self.is_guest and self.id is not None

    def owns(self, owner_username: str | None) -> bool:
        return owner_username is not None and self.username == owner_username


def is_guest_username(username: str | None) -> bool:
    return bool(username) and GUEST_USERNAME_PATTERN.match(username) is not None


def guest_identity(username: str) -> Identity:
    """Build a guest identity. Raises ValueError on a malformed guest name."""
    username = (username or "").strip()
    if not is_guest_username(username):
        raise ValueError(
            f"Guest username must be exactly 7 digits, got {username!r}",
        )
    return Identity(id=None, username=username, role=Role.USER, is_guest=True)


def authenticated_identity(profile: dict) -> Identity:
    """Build an authenticated identity from a Role Store profile snapshot."""
    return Identity(
        id=profile["id"],
        username=profile["username"],
        role=Role(profile.get("role") or Role.USER.value),
        is_guest=False,
    )
