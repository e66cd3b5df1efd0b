"""Account Service — profile creation through the username policy.

Invariants:
    - The username policy runs exactly once, before the profile row exists
    - A forbidden candidate raises ForbiddenUsernameError and writes nothing
    - New profiles always start with role "user"
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.config import get_settings
from fellowship.core.domain_types import Role
from fellowship.core.errors import ConflictError, ErrorContext, ForbiddenUsernameError
from fellowship.core.repository_protocols import UsernameDirectory
from fellowship.core.username_policy import validate_username
from fellowship.models.forbidden_word import ForbiddenWord
from fellowship.models.profile import Profile

logger = logging.getLogger(__name__)


class ProfileDirectory:
    """UsernameDirectory backed by profiles and forbidden_usernames."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def forbidden_words(self) -> list[str]:
        result = await self.db.execute(select(ForbiddenWord.word))
        return list(result.scalars().all())

    async def usernames_with_prefix(self, prefix: str) -> set[str]:
        result = await self.db.execute(
            select(Profile.username).where(
                Profile.username.startswith(prefix, autoescape=True),
            ),
        )
        return set(result.scalars().all())


async def create_account(
    db: AsyncSession, account_id: UUID, requested_username: str | None = None,
) -> dict:
    """Create the profile for `account_id` with a policy-approved username."""
    if await db.get(Profile, account_id) is not None:
        raise ConflictError(f"Profile {account_id} already exists")

    directory: UsernameDirectory = ProfileDirectory(db)
    requested = (requested_username or "").strip()
    taken = await directory.usernames_with_prefix(requested or "user_")
    result = validate_username(
        requested,
        await directory.forbidden_words(),
        taken,
        generated_id=str(account_id),
        max_attempts=get_settings().max_username_attempts,
    )
    if not result.ok:
        logger.warning(
            "Sign-up rejected: forbidden username",
            extra={"entity_id": str(account_id), "error_code": "FORBIDDEN_USERNAME"},
        )
        raise ForbiddenUsernameError(
            requested, ErrorContext(entity_kind="profiles", operation="create"),
        )
    if result.fell_back:
        logger.warning(
            f"Username retries exhausted for {requested!r}, using fallback",
            extra={"entity_id": str(account_id)},
        )

    profile = Profile(id=account_id, username=result.username, role=Role.USER.value)
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Username {result.username!r} was taken concurrently")

    logger.info(
        f"Profile created as {result.username} after {result.attempts} retr(ies)",
        extra={"username": result.username, "entity_id": str(account_id)},
    )
    return profile.to_snapshot()
