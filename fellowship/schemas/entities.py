"""Entity Schemas — per-kind request bodies for the generic entity routes.

Invariants:
    - Length and range limits mirror the FieldLimit table in core/entity_registry.py
    - Update bodies list only fields a caller may ever send; ownership, parent
      links and server-derived columns (excerpt, view_count) are absent
    - extra="forbid": unknown keys are a 400, never silently dropped

Design Decisions:
    - Owner fields are optional on create; the write service fills in the
      caller's username, and authorize() rejects a mismatching value
    - Notification has no create schema: notifications come from triggers only
"""

from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from fellowship.core.domain_types import EntityKind


class _Body(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


NonBlank = Annotated[str, AfterValidator(_strip_required)]


# ─── Pins and their children ────────────────────────────────────

class PinCreate(_Body):
    username: str | None = Field(None, max_length=100)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    description: str = Field("", max_length=1000)
    images: list[str] = Field(default_factory=list)
    storage_paths: list[str] = Field(default_factory=list)
    pin_color: str | None = Field(None, max_length=20)
    is_editor_choice: bool = False
    continent: str | None = None
    country: str | None = None
    state: str | None = None
    locality: str | None = None


class PinUpdate(_Body):
    description: str | None = Field(None, max_length=1000)
    images: list[str] | None = None
    storage_paths: list[str] | None = None
    pin_color: str | None = Field(None, max_length=20)
    is_editor_choice: bool | None = None
    continent: str | None = None
    country: str | None = None
    state: str | None = None
    locality: str | None = None


class CommentCreate(_Body):
    pin_id: UUID
    username: str | None = Field(None, max_length=100)
    text: NonBlank = Field(min_length=1, max_length=100)
    media_url: str | None = None


class LikeCreate(_Body):
    pin_id: UUID
    username: str | None = Field(None, max_length=100)
    image_index: int = Field(0, ge=0)


class CommentLikeCreate(_Body):
    comment_id: UUID
    username: str | None = Field(None, max_length=100)


# ─── Blog ───────────────────────────────────────────────────────

class BlogPostCreate(_Body):
    author_username: str | None = Field(None, max_length=100)
    title: NonBlank = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=10_000)
    is_published: bool = False
    is_editor_choice: bool = False


class BlogPostUpdate(_Body):
    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1, max_length=10_000)
    is_published: bool | None = None
    is_editor_choice: bool | None = None


class BlogPostCommentCreate(_Body):
    blog_post_id: UUID
    username: str | None = Field(None, max_length=100)
    text: NonBlank = Field(min_length=1, max_length=1000)
    media_url: str | None = None


class BlogPostLikeCreate(_Body):
    blog_post_id: UUID
    username: str | None = Field(None, max_length=100)


class BlogPostCommentLikeCreate(_Body):
    blog_post_comment_id: UUID
    username: str | None = Field(None, max_length=100)


# ─── Marketplace ────────────────────────────────────────────────

class MarketplaceItemCreate(_Body):
    seller_username: str | None = Field(None, max_length=100)
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    images: list[str] = Field(default_factory=list)
    storage_paths: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_editor_choice: bool = False


class MarketplaceItemUpdate(_Body):
    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=1000)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    images: list[str] | None = None
    storage_paths: list[str] | None = None
    is_active: bool | None = None
    is_editor_choice: bool | None = None


# ─── Chat ───────────────────────────────────────────────────────

class ChatMessageCreate(_Body):
    conversation_id: str = Field(min_length=1, max_length=255)
    username: str | None = Field(None, max_length=100)
    message: NonBlank = Field(min_length=1, max_length=1000)
    media_url: str | None = None


class ChatMessageLikeCreate(_Body):
    message_id: UUID
    username: str | None = Field(None, max_length=100)


# ─── Notifications ──────────────────────────────────────────────

class NotificationUpdate(_Body):
    is_read: bool


CREATE_SCHEMAS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.PIN: PinCreate,
    EntityKind.COMMENT: CommentCreate,
    EntityKind.LIKE: LikeCreate,
    EntityKind.COMMENT_LIKE: CommentLikeCreate,
    EntityKind.BLOG_POST: BlogPostCreate,
    EntityKind.BLOG_POST_COMMENT: BlogPostCommentCreate,
    EntityKind.BLOG_POST_LIKE: BlogPostLikeCreate,
    EntityKind.BLOG_POST_COMMENT_LIKE: BlogPostCommentLikeCreate,
    EntityKind.MARKETPLACE_ITEM: MarketplaceItemCreate,
    EntityKind.CHAT_MESSAGE: ChatMessageCreate,
    EntityKind.CHAT_MESSAGE_LIKE: ChatMessageLikeCreate,
}

UPDATE_SCHEMAS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.PIN: PinUpdate,
    EntityKind.BLOG_POST: BlogPostUpdate,
    EntityKind.MARKETPLACE_ITEM: MarketplaceItemUpdate,
    EntityKind.NOTIFICATION: NotificationUpdate,
}
