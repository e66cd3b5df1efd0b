"""Blog like ORMs — likes on blog posts and on blog post comments.

Invariants:
    - One like per (post, user) and per (post comment, user)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fellowship.db.base import Base


class BlogPostLike(Base):
    __tablename__ = "blog_post_likes"
    __table_args__ = (UniqueConstraint("blog_post_id", "username"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    blog_post_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("blog_posts.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class BlogPostCommentLike(Base):
    __tablename__ = "blog_post_comment_likes"
    __table_args__ = (UniqueConstraint("blog_post_comment_id", "username"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    blog_post_comment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("blog_post_comments.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
