"""Admin Routes — forbidden-word list and role assignment.

Invariants:
    - Every handler requires an admin identity; the check lives in the
      services, so these routes stay thin
    - Forbidden words are stored lower-cased (ForbiddenWordCreate normalizes)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.api.deps import get_identity
from fellowship.core.identity import Identity
from fellowship.infrastructure.database import get_db
from fellowship.schemas.accounts import ForbiddenWordCreate, RoleChange
from fellowship.services.forbidden_words import ForbiddenWordAdmin
from fellowship.services.identity_resolver import change_role

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/forbidden-words")
async def list_forbidden_words(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return {"items": await ForbiddenWordAdmin(db).list_words(identity)}


@router.post("/forbidden-words", status_code=status.HTTP_201_CREATED)
async def add_forbidden_word(
    body: ForbiddenWordCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await ForbiddenWordAdmin(db).add(identity, body.word)


@router.delete("/forbidden-words/{word_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_forbidden_word(
    word_id: UUID,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    await ForbiddenWordAdmin(db).remove(identity, word_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/profiles/{profile_id}/role")
async def set_profile_role(
    profile_id: UUID,
    body: RoleChange,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await change_role(db, identity, profile_id, body.role)
