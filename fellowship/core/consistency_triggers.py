"""Consistency Triggers — derived state computed from a primary write.

Invariants:
    - All functions are PURE: the clock is injectable, nothing is persisted here
    - on_write returns the derived writes; the caller applies them in the SAME
      transaction as the primary write
    - Excerpt derivation is idempotent: derive_excerpt(derive_excerpt(c)) == derive_excerpt(c)
    - Fan-out never notifies the actor about their own action
    - Fan-out yields at most one notification per created row

Design Decisions:
    - Explicit post-write hook instead of storage triggers: the write service
      calls on_write, so the rules are unit-testable without a database
    - `target` is the parent row (pin, post, comment...) loaded by the caller;
      the trigger never looks anything up itself
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fellowship.core.conversations import other_participant
from fellowship.core.domain_types import (
    EXCERPT_LENGTH,
    EXCERPT_SUFFIX,
    EntityKind,
    Operation,
)
from fellowship.core.entity_registry import get_spec, owner_of
from fellowship.core.identity import Identity


_TAG_RE = re.compile(r"<[^>]*>")


@dataclass(frozen=True)
class DerivedWrite:
    """One extra write produced by a trigger.

    entity_id is None for inserts. For updates it names the row to patch.
    """
    kind: EntityKind
    operation: Operation
    values: dict = field(default_factory=dict)
    entity_id: object | None = None


# --- Excerpt -----------------------------------------------------------------

def strip_markup(content: str) -> str:
    return _TAG_RE.sub("", content or "")


def derive_excerpt(content: str, length: int = EXCERPT_LENGTH) -> str:
    """Plain-text excerpt: markup stripped, cut at `length` chars plus "..."."""
    stripped = strip_markup(content)
    if len(stripped) <= length:
        return stripped
    return stripped[:length] + EXCERPT_SUFFIX


def excerpt_trigger(
    after: dict, *, now: datetime | None = None, length: int = EXCERPT_LENGTH,
) -> DerivedWrite:
    return DerivedWrite(
        kind=EntityKind.BLOG_POST,
        operation=Operation.UPDATE,
        values={
            "excerpt": derive_excerpt(after.get("content", ""), length),
            "updated_at": now or datetime.now(timezone.utc),
        },
        entity_id=after.get("id"),
    )


# --- Notification fan-out ----------------------------------------------------

def notification_recipient(
    kind: EntityKind, after: dict, target: dict | None,
) -> str | None:
    """Who the created row's action is addressed to, or None if nobody."""
    rule = get_spec(kind).notify
    if rule is None:
        return None
    if rule.recipient == "conversation_peer":
        return other_participant(
            after.get("conversation_id") or "", after.get("username") or "",
        )
    parent = get_spec(kind).parent
    if parent is None or target is None:
        return None
    return owner_of(parent.kind, target)


def notification_trigger(
    kind: EntityKind, after: dict, actor: Identity, target: dict | None = None,
) -> DerivedWrite | None:
    """Build the single notification for a like/comment/message, if any."""
    spec = get_spec(kind)
    rule = spec.notify
    if rule is None:
        return None
    recipient = notification_recipient(kind, after, target)
    if not recipient or recipient == actor.username:
        return None

    if rule.entity_source == "self":
        entity_id = after.get("id")
    else:
        entity_id = after.get(spec.parent.fk_field)

    message = rule.template.format(
        actor=actor.username,
        title=(target or {}).get("title", ""),
    )
    return DerivedWrite(
        kind=EntityKind.NOTIFICATION,
        operation=Operation.CREATE,
        values={
            "recipient_username": recipient,
            "sender_username": actor.username,
            "type": rule.type.value,
            "entity_type": rule.entity_type.value,
            "entity_id": entity_id,
            "message": message,
            "is_read": False,
        },
    )


# --- Entry point -------------------------------------------------------------

def on_write(
    kind: EntityKind | str,
    before: dict | None,
    after: dict | None,
    actor: Identity,
    target: dict | None = None,
    *,
    now: datetime | None = None,
    excerpt_length: int = EXCERPT_LENGTH,
) -> list[DerivedWrite]:
    """Derived writes for one successful primary write.

    before=None means create, after=None means delete.
    """
    kind = EntityKind(kind)
    derived: list[DerivedWrite] = []
    if after is None:
        return derived

    if kind == EntityKind.BLOG_POST:
        derived.append(excerpt_trigger(after, now=now, length=excerpt_length))

    if before is None:
        notification = notification_trigger(kind, after, actor, target)
        if notification is not None:
            derived.append(notification)

    return derived
