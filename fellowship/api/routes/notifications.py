"""Notification inbox routes — always scoped to the calling identity."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.api.deps import get_identity
from fellowship.core.domain_types import NotificationEntityType
from fellowship.core.identity import Identity
from fellowship.infrastructure.database import get_db
from fellowship.services.notification_inbox import NotificationInbox

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    is_read: bool | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    items = await NotificationInbox(db).fetch(
        identity, is_read=is_read, limit=limit, offset=offset,
    )
    return {"items": items, "limit": limit, "offset": offset}


@router.get("/unread-count")
async def unread_count(
    entity_type: NotificationEntityType | None = Query(None),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationInbox(db).unread_count(identity, entity_type)
    return {"unread": count}


@router.post("/read-all")
async def mark_all_read(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationInbox(db).mark_all_read(identity)
    return {"updated": updated}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationInbox(db).mark_read(identity, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: UUID,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    await NotificationInbox(db).delete(identity, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
