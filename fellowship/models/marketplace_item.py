"""MarketplaceItem ORM — a listing for sale.

Invariants:
    - seller_username is the owner and never changes
    - price >= 0 (DB check constraint mirrors the core field limit)
    - inactive listings are hidden from every reader
"""

import uuid
from decimal import Decimal
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Numeric, Boolean, DateTime, JSON, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fellowship.db.base import Base


class MarketplaceItem(Base):
    __tablename__ = "marketplace_items"
    __table_args__ = (
        CheckConstraint("price >= 0", name="marketplace_items_price_check"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    seller_username: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    storage_paths: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_editor_choice: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
