"""Notification Inbox — the recipient's view over trigger-created notifications.

Invariants:
    - Queries are always scoped to the caller's username
    - Marking one read and deleting go through EntityWriteService, so the
      is_read-only update rule and owner-or-admin delete rule apply
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.core.domain_types import EntityKind, NotificationEntityType
from fellowship.core.identity import Identity
from fellowship.models.notification import Notification
from fellowship.services.entity_writes import EntityWriteService

logger = logging.getLogger(__name__)


class NotificationInbox:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.writes = EntityWriteService(db)

    async def fetch(
        self,
        identity: Identity,
        is_read: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict]:
        query = select(Notification).where(
            Notification.recipient_username == identity.username,
        )
        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        query = query.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return [row.to_snapshot() for row in result.scalars().all()]

    async def unread_count(
        self,
        identity: Identity,
        entity_type: NotificationEntityType | str | None = None,
    ) -> int:
        query = select(func.count()).select_from(Notification).where(
            Notification.recipient_username == identity.username,
            Notification.is_read.is_(False),
        )
        if entity_type is not None:
            query = query.where(
                Notification.entity_type == NotificationEntityType(entity_type).value,
            )
        return (await self.db.execute(query)).scalar_one()

    async def mark_read(self, identity: Identity, notification_id: UUID) -> dict:
        return await self.writes.update(
            identity, EntityKind.NOTIFICATION, notification_id, {"is_read": True},
        )

    async def mark_all_read(self, identity: Identity) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.recipient_username == identity.username,
                Notification.is_read.is_(False),
            )
            .values(is_read=True),
        )
        await self.db.commit()
        logger.info(
            f"Marked {result.rowcount} notification(s) read",
            extra={"username": identity.username, "entity_kind": "notifications"},
        )
        return result.rowcount

    async def delete(self, identity: Identity, notification_id: UUID) -> bool:
        return await self.writes.delete(
            identity, EntityKind.NOTIFICATION, notification_id,
        )
