"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - EntityId, ProfileId wrap UUIDs; Username wraps str
    - Every closed vocabulary (roles, kinds, operations, notification types) is an Enum
    - EntityKind values equal the table names used by the persistence layer

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and compare equal to their raw column values
"""

import re
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

EntityId = NewType("EntityId", UUID)
ProfileId = NewType("ProfileId", UUID)
Username = NewType("Username", str)


# ─── Constants ───────────────────────────────────────────────────

GUEST_USERNAME_PATTERN = re.compile(r"^\d{7}$")
EXCERPT_LENGTH = 300
EXCERPT_SUFFIX = "..."
MAX_USERNAME_ATTEMPTS = 10
USERNAME_SUFFIX_LENGTH = 8
DM_PREFIX = "dm_"


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Profile role, stored in the `role` column on profiles."""
    USER = "user"
    ADMIN = "admin"


class Operation(str, Enum):
    """The four operations every permission check is phrased in."""
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntityKind(str, Enum):
    """Every persisted content variant. Value is the table name."""
    PIN = "pins"
    COMMENT = "comments"
    LIKE = "likes"
    COMMENT_LIKE = "comment_likes"
    BLOG_POST = "blog_posts"
    BLOG_POST_COMMENT = "blog_post_comments"
    BLOG_POST_LIKE = "blog_post_likes"
    BLOG_POST_COMMENT_LIKE = "blog_post_comment_likes"
    MARKETPLACE_ITEM = "marketplace_items"
    CHAT_MESSAGE = "chat_messages"
    CHAT_MESSAGE_LIKE = "chat_message_likes"
    NOTIFICATION = "notifications"
    FORBIDDEN_WORD = "forbidden_usernames"


class NotificationType(str, Enum):
    """What the sender did."""
    LIKE = "like"
    COMMENT = "comment"
    MESSAGE = "message"


class NotificationEntityType(str, Enum):
    """What the sender did it to."""
    PIN = "pin"
    BLOG_POST = "blog_post"
    MARKETPLACE_ITEM = "marketplace_item"
    CHAT_MESSAGE = "chat_message"
    COMMENT = "comment"
    BLOG_POST_COMMENT = "blog_post_comment"


class ReadVisibility(str, Enum):
    """Row visibility rule applied on READ."""
    PUBLIC = "public"
    ACTIVE_ONLY = "active_only"
    PUBLISHED_OR_AUTHOR = "published_or_author"
    OWNER_OR_ADMIN = "owner_or_admin"
    CONVERSATION = "conversation"
    ADMIN_ONLY = "admin_only"
