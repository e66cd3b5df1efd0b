"""ORM Models — SQLAlchemy declarative models for every entity kind.

Invariants:
    - All models inherit from Base (db/base.py)
    - MODELS_BY_KIND has exactly one model per EntityKind; its __tablename__
      equals the kind's value

Design Decisions:
    - One file per entity (like tables grouped with their parent family)
    - All models imported here so Base.metadata is complete before create_all
"""

from fellowship.core.domain_types import EntityKind
from fellowship.db.base import Base
from fellowship.models.profile import Profile
from fellowship.models.pin import Pin
from fellowship.models.comment import Comment
from fellowship.models.like import Like, CommentLike
from fellowship.models.blog_post import BlogPost
from fellowship.models.blog_post_comment import BlogPostComment
from fellowship.models.blog_post_like import BlogPostLike, BlogPostCommentLike
from fellowship.models.marketplace_item import MarketplaceItem
from fellowship.models.chat_message import ChatMessage, ChatMessageLike
from fellowship.models.notification import Notification
from fellowship.models.forbidden_word import ForbiddenWord

MODELS_BY_KIND: dict[EntityKind, type[Base]] = {
    EntityKind.PIN: Pin,
    EntityKind.COMMENT: Comment,
    EntityKind.LIKE: Like,
    EntityKind.COMMENT_LIKE: CommentLike,
    EntityKind.BLOG_POST: BlogPost,
    EntityKind.BLOG_POST_COMMENT: BlogPostComment,
    EntityKind.BLOG_POST_LIKE: BlogPostLike,
    EntityKind.BLOG_POST_COMMENT_LIKE: BlogPostCommentLike,
    EntityKind.MARKETPLACE_ITEM: MarketplaceItem,
    EntityKind.CHAT_MESSAGE: ChatMessage,
    EntityKind.CHAT_MESSAGE_LIKE: ChatMessageLike,
    EntityKind.NOTIFICATION: Notification,
    EntityKind.FORBIDDEN_WORD: ForbiddenWord,
}

__all__ = [
    "MODELS_BY_KIND", "Profile", "Pin", "Comment", "Like", "CommentLike",
    "BlogPost", "BlogPostComment", "BlogPostLike", "BlogPostCommentLike",
    "MarketplaceItem", "ChatMessage", "ChatMessageLike", "Notification",
    "ForbiddenWord",
]
