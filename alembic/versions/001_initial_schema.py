"""Initial schema — profiles, pins, blog, marketplace, chat, notifications.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False,
        server_default=sa.func.now(),
    )


def _parent(name: str, table: str) -> sa.Column:
    return sa.Column(
        name, UUID(as_uuid=True),
        sa.ForeignKey(f"{table}.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        _id(),
        sa.Column("username", sa.String(100), nullable=False, unique=True, index=True),
        sa.Column("role", sa.String(10), nullable=False, server_default="user"),
        sa.Column("about_me", sa.Text, nullable=True),
        sa.Column("contact_info", sa.Text, nullable=True),
        sa.Column("profile_picture_url", sa.Text, nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "pins",
        _id(),
        sa.Column("username", sa.String(100), nullable=False, index=True),
        sa.Column("lat", sa.Float, nullable=False, server_default="0"),
        sa.Column("lng", sa.Float, nullable=False, server_default="0"),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("images", sa.JSON, nullable=False),
        sa.Column("storage_paths", sa.JSON, nullable=False),
        sa.Column("pin_color", sa.String(20), nullable=True),
        sa.Column("is_authenticated", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_editor_choice", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("continent", sa.Text, nullable=True),
        sa.Column("country", sa.Text, nullable=True),
        sa.Column("state", sa.Text, nullable=True),
        sa.Column("locality", sa.Text, nullable=True),
        _created_at(),
    )

    op.create_table(
        "comments",
        _id(),
        _parent("pin_id", "pins"),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("text", sa.String(100), nullable=False),
        sa.Column("media_url", sa.Text, nullable=True),
        _created_at(),
    )

    op.create_table(
        "likes",
        _id(),
        _parent("pin_id", "pins"),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("image_index", sa.Integer, nullable=False, server_default="0"),
        _created_at(),
        sa.UniqueConstraint("pin_id", "username", "image_index"),
    )

    op.create_table(
        "comment_likes",
        _id(),
        _parent("comment_id", "comments"),
        sa.Column("username", sa.String(100), nullable=False),
        _created_at(),
        sa.UniqueConstraint("comment_id", "username"),
    )

    op.create_table(
        "blog_posts",
        _id(),
        sa.Column("author_username", sa.String(100), nullable=False, index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("excerpt", sa.Text, nullable=True),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_editor_choice", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "blog_post_comments",
        _id(),
        _parent("blog_post_id", "blog_posts"),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("text", sa.String(1000), nullable=False),
        sa.Column("media_url", sa.Text, nullable=True),
        _created_at(),
    )

    op.create_table(
        "blog_post_likes",
        _id(),
        _parent("blog_post_id", "blog_posts"),
        sa.Column("username", sa.String(100), nullable=False),
        _created_at(),
        sa.UniqueConstraint("blog_post_id", "username"),
    )

    op.create_table(
        "blog_post_comment_likes",
        _id(),
        _parent("blog_post_comment_id", "blog_post_comments"),
        sa.Column("username", sa.String(100), nullable=False),
        _created_at(),
        sa.UniqueConstraint("blog_post_comment_id", "username"),
    )

    op.create_table(
        "marketplace_items",
        _id(),
        sa.Column("seller_username", sa.String(100), nullable=False, index=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("images", sa.JSON, nullable=False),
        sa.Column("storage_paths", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_editor_choice", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("price >= 0", name="marketplace_items_price_check"),
    )

    # pin_id holds either a pin id or a "dm_<a>_<b>" conversation id
    op.create_table(
        "chat_messages",
        _id(),
        sa.Column("pin_id", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("media_url", sa.Text, nullable=True),
        _created_at(),
    )
    op.create_index(
        "chat_messages_pin_id_created_at_idx", "chat_messages",
        ["pin_id", "created_at"],
    )

    op.create_table(
        "chat_message_likes",
        _id(),
        _parent("message_id", "chat_messages"),
        sa.Column("username", sa.String(100), nullable=False),
        _created_at(),
        sa.UniqueConstraint("message_id", "username"),
    )

    op.create_table(
        "notifications",
        _id(),
        sa.Column("recipient_username", sa.String(100), nullable=False, index=True),
        sa.Column("sender_username", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("entity_type", sa.String(30), nullable=False),
        sa.Column("entity_id", UUID(as_uuid=True), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
        sa.CheckConstraint(
            "type IN ('like', 'comment', 'message')",
            name="notifications_type_check",
        ),
        sa.CheckConstraint(
            "entity_type IN ('pin', 'blog_post', 'marketplace_item', "
            "'chat_message', 'comment', 'blog_post_comment')",
            name="notifications_entity_type_check",
        ),
    )
    op.create_index(
        "notifications_recipient_unread_idx", "notifications",
        ["recipient_username", "is_read", "created_at"],
    )

    op.create_table(
        "forbidden_usernames",
        _id(),
        sa.Column("word", sa.String(100), nullable=False, unique=True),
        _created_at(),
    )


def downgrade() -> None:
    op.drop_table("forbidden_usernames")
    op.drop_index("notifications_recipient_unread_idx", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("chat_message_likes")
    op.drop_index("chat_messages_pin_id_created_at_idx", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_table("marketplace_items")
    op.drop_table("blog_post_comment_likes")
    op.drop_table("blog_post_likes")
    op.drop_table("blog_post_comments")
    op.drop_table("blog_posts")
    op.drop_table("comment_likes")
    op.drop_table("comments")
    op.drop_table("likes")
    op.drop_table("pins")
    op.drop_table("profiles")
