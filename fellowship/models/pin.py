"""Pin ORM — a map pin with images, owned by a user or a guest.

Invariants:
    - username is the owner and never changes
    - is_authenticated records whether the owner was signed in when pinning
    - is_editor_choice is admin-controlled

Design Decisions:
    - JSON for images/storage_paths: portable across Postgres and SQLite
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Float, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fellowship.db.base import Base


class Pin(Base):
    __tablename__ = "pins"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    username: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    lng: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    storage_paths: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    pin_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_authenticated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    is_editor_choice: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    continent: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str | None] = mapped_column(Text, nullable=True)
    locality: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
