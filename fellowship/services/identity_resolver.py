"""Identity Resolver — turns request credentials into a core Identity.

Invariants:
    - An authenticated caller's username and role come from the profiles row,
      never from anything the caller sends
    - A guest is accepted only with a well-formed 7-digit username and is never
      written to profiles
    - When both a user id and a guest name are supplied, the user id wins

Design Decisions:
    - ProfileRoleStore is the only code that reads or writes profiles.role
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.core.domain_types import ProfileId, Role
from fellowship.core.errors import (
    ErrorContext, IdentityRequiredError, PermissionDeniedError, ResourceNotFoundError,
)
from fellowship.core.identity import Identity, authenticated_identity, guest_identity
from fellowship.core.repository_protocols import RoleStore
from fellowship.models.profile import Profile

logger = logging.getLogger(__name__)


class ProfileRoleStore:
    """RoleStore backed by the profiles table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, profile_id: ProfileId) -> dict | None:
        profile = await self.db.get(Profile, profile_id)
        return profile.to_snapshot() if profile else None

    async def get_role(self, profile_id: ProfileId) -> Role | None:
        profile = await self.db.get(Profile, profile_id)
        return Role(profile.role) if profile else None

    async def set_role(self, profile_id: ProfileId, role: Role) -> dict:
        profile = await self.db.get(Profile, profile_id)
        if profile is None:
            raise ResourceNotFoundError("Profile", str(profile_id))
        profile.role = Role(role).value
        profile.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return profile.to_snapshot()


async def resolve_identity(
    db: AsyncSession,
    user_id: str | UUID | None = None,
    guest_username: str | None = None,
) -> Identity:
    """Resolve an authenticated profile or a guest into an Identity."""
    if user_id:
        try:
            profile_id = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            raise IdentityRequiredError(f"Malformed user id: {user_id!r}")
        store: RoleStore = ProfileRoleStore(db)
        profile = await store.get_profile(ProfileId(profile_id))
        if profile is None:
            logger.warning(
                "Authenticated caller has no profile",
                extra={"entity_id": str(profile_id)},
            )
            raise IdentityRequiredError(
                "No profile exists for this account. Create one first.",
            )
        return authenticated_identity(profile)

    if guest_username:
        try:
            return guest_identity(guest_username)
        except ValueError as e:
            raise IdentityRequiredError(str(e))

    raise IdentityRequiredError("Sign in or choose a guest username.")


async def change_role(
    db: AsyncSession, actor: Identity, profile_id: UUID, role: Role,
) -> dict:
    """Admin-only role change. Commits on success."""
    if not actor.is_admin:
        raise PermissionDeniedError(
            "Only admins may change roles.", "ADMIN_REQUIRED",
            ErrorContext(username=actor.username, entity_kind="profiles",
                         entity_id=str(profile_id), operation="update"),
        )
    store: RoleStore = ProfileRoleStore(db)
    snapshot = await store.set_role(ProfileId(profile_id), role)
    await db.commit()
    logger.info(
        f"Role set to {Role(role).value}",
        extra={"username": actor.username, "entity_id": str(profile_id)},
    )
    return snapshot
