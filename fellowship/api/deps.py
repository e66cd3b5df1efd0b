"""Request dependencies — caller identity from headers.

X-User-Id names an authenticated profile (resolved through the role store);
X-Guest-Username carries a 7-digit guest name. Neither present → 401.
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.core.identity import Identity
from fellowship.infrastructure.database import get_db
from fellowship.services.identity_resolver import resolve_identity


async def get_identity(
    x_user_id: str | None = Header(None),
    x_guest_username: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    return await resolve_identity(db, x_user_id, x_guest_username)
