"""Notification ORM — inbox entry produced by the fan-out trigger.

Invariants:
    - Created only as a side effect of a like/comment/message by someone else
    - Only is_read ever changes after insert
    - Never deleted automatically (entity_id is not a foreign key)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Boolean, DateTime, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fellowship.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint(
            "type IN ('like', 'comment', 'message')",
            name="notifications_type_check",
        ),
        CheckConstraint(
            "entity_type IN ('pin', 'blog_post', 'marketplace_item', "
            "'chat_message', 'comment', 'blog_post_comment')",
            name="notifications_entity_type_check",
        ),
        Index(
            "notifications_recipient_unread_idx",
            "recipient_username", "is_read", "created_at",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    recipient_username: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    sender_username: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(30), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
