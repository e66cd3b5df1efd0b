"""Account Routes — sign-up through the username policy, and who-am-I."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.api.deps import get_identity
from fellowship.core.identity import Identity
from fellowship.infrastructure.database import get_db
from fellowship.schemas.accounts import AccountCreate
from fellowship.services.account_service import create_account

router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_profile(body: AccountCreate, db: AsyncSession = Depends(get_db)):
    """Create the profile row for a newly signed-up account."""
    return await create_account(db, body.id, body.username)


@router.get("/me")
async def who_am_i(identity: Identity = Depends(get_identity)):
    return {
        "id": identity.id,
        "username": identity.username,
        "role": identity.role.value,
        "is_guest": identity.is_guest,
        "is_admin": identity.is_admin,
    }
