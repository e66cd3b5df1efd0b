"""Entity Registry — declarative description of every entity kind.

Invariants:
    - Exactly one EntitySpec per EntityKind (RuntimeError at import otherwise)
    - owner_field names the username column checked for ownership; None means
      the kind has no owner (admin-managed)
    - parent links form a forest: deleting a parent removes every descendant
    - Immutable fields (id, created_at, owner, parent link) are never updatable

Design Decisions:
    - Frozen dataclasses in a module-level dict: the permission engine, the
      field checks, the triggers and the cascade all read the same table
    - Notification templates live beside the kind that fires them so adding a
      new likeable kind is a single registry entry
"""

from dataclasses import dataclass, field

from fellowship.core.domain_types import (
    EntityKind,
    NotificationEntityType,
    NotificationType,
    Operation,
    ReadVisibility,
)


ALL_OPERATIONS = frozenset(Operation)
NO_UPDATE = frozenset({Operation.READ, Operation.CREATE, Operation.DELETE})


@dataclass(frozen=True)
class FieldLimit:
    """Constraint on one column. Lengths count characters after strip()."""
    field: str
    min_length: int | None = None
    max_length: int | None = None
    min_value: float | None = None
    choices: frozenset[str] | None = None


@dataclass(frozen=True)
class ParentLink:
    """Foreign-key link to the parent entity."""
    kind: EntityKind
    fk_field: str


@dataclass(frozen=True)
class NotifyRule:
    """Notification fired when an entity of this kind is created.

    recipient is "parent_owner" (owner of the parent entity) or
    "conversation_peer" (other participant of a DM conversation).
    entity_source is "parent" (notification points at the parent) or
    "self" (points at the new row).
    """
    type: NotificationType
    entity_type: NotificationEntityType
    template: str
    recipient: str = "parent_owner"
    entity_source: str = "parent"


@dataclass(frozen=True)
class EntitySpec:
    kind: EntityKind
    owner_field: str | None
    operations: frozenset[Operation] = ALL_OPERATIONS
    read_visibility: ReadVisibility = ReadVisibility.PUBLIC
    parent: ParentLink | None = None
    guest_writable: bool = True
    system_created: bool = False
    field_limits: tuple[FieldLimit, ...] = ()
    admin_only_fields: frozenset[str] = frozenset()
    updatable_fields: frozenset[str] | None = None
    notify: NotifyRule | None = None
    extra_immutable: frozenset[str] = field(default_factory=frozenset)

    @property
    def immutable_fields(self) -> frozenset[str]:
        fixed = {"id", "created_at"}
        if self.owner_field:
            fixed.add(self.owner_field)
        if self.parent:
            fixed.add(self.parent.fk_field)
        return frozenset(fixed) | self.extra_immutable

    def supports(self, operation: Operation) -> bool:
        return operation in self.operations


def _text(name: str, max_length: int, min_length: int = 1) -> FieldLimit:
    return FieldLimit(name, min_length=min_length, max_length=max_length)


_SPECS: tuple[EntitySpec, ...] = (
    EntitySpec(
        kind=EntityKind.PIN,
        owner_field="username",
        field_limits=(_text("description", 1000, min_length=0),),
        admin_only_fields=frozenset({"is_editor_choice"}),
        extra_immutable=frozenset({"is_authenticated"}),
    ),
    EntitySpec(
        kind=EntityKind.COMMENT,
        owner_field="username",
        operations=NO_UPDATE,
        parent=ParentLink(EntityKind.PIN, "pin_id"),
        field_limits=(_text("text", 100),),
        notify=NotifyRule(
            NotificationType.COMMENT, NotificationEntityType.PIN,
            "{actor} commented on your pin",
        ),
    ),
    EntitySpec(
        kind=EntityKind.LIKE,
        owner_field="username",
        operations=NO_UPDATE,
        parent=ParentLink(EntityKind.PIN, "pin_id"),
        field_limits=(FieldLimit("image_index", min_value=0),),
        notify=NotifyRule(
            NotificationType.LIKE, NotificationEntityType.PIN,
            "{actor} liked your pin",
        ),
    ),
    EntitySpec(
        kind=EntityKind.COMMENT_LIKE,
        owner_field="username",
        operations=NO_UPDATE,
        parent=ParentLink(EntityKind.COMMENT, "comment_id"),
        notify=NotifyRule(
            NotificationType.LIKE, NotificationEntityType.COMMENT,
            "{actor} liked your comment",
        ),
    ),
    EntitySpec(
        kind=EntityKind.BLOG_POST,
        owner_field="author_username",
        read_visibility=ReadVisibility.PUBLISHED_OR_AUTHOR,
        guest_writable=False,
        field_limits=(_text("title", 200), _text("content", 10_000)),
        admin_only_fields=frozenset({"is_editor_choice"}),
        extra_immutable=frozenset({"excerpt", "view_count"}),
    ),
    EntitySpec(
        kind=EntityKind.BLOG_POST_COMMENT,
        owner_field="username",
        operations=NO_UPDATE,
        parent=ParentLink(EntityKind.BLOG_POST, "blog_post_id"),
        field_limits=(_text("text", 1000),),
        notify=NotifyRule(
            NotificationType.COMMENT, NotificationEntityType.BLOG_POST,
            '{actor} commented on your blog post "{title}"',
        ),
    ),
    EntitySpec(
        kind=EntityKind.BLOG_POST_LIKE,
        owner_field="username",
        operations=NO_UPDATE,
        parent=ParentLink(EntityKind.BLOG_POST, "blog_post_id"),
        notify=NotifyRule(
            NotificationType.LIKE, NotificationEntityType.BLOG_POST,
            '{actor} liked your blog post "{title}"',
        ),
    ),
    EntitySpec(
        kind=EntityKind.BLOG_POST_COMMENT_LIKE,
        owner_field="username",
        operations=NO_UPDATE,
        parent=ParentLink(EntityKind.BLOG_POST_COMMENT, "blog_post_comment_id"),
        notify=NotifyRule(
            NotificationType.LIKE, NotificationEntityType.BLOG_POST_COMMENT,
            "{actor} liked your comment",
        ),
    ),
    EntitySpec(
        kind=EntityKind.MARKETPLACE_ITEM,
        owner_field="seller_username",
        read_visibility=ReadVisibility.ACTIVE_ONLY,
        guest_writable=False,
        field_limits=(
            _text("title", 100),
            _text("description", 1000),
            FieldLimit("price", min_value=0),
        ),
        admin_only_fields=frozenset({"is_editor_choice"}),
    ),
    EntitySpec(
        kind=EntityKind.CHAT_MESSAGE,
        owner_field="username",
        operations=NO_UPDATE,
        read_visibility=ReadVisibility.CONVERSATION,
        guest_writable=False,
        field_limits=(_text("message", 1000), _text("conversation_id", 255)),
        notify=NotifyRule(
            NotificationType.MESSAGE, NotificationEntityType.CHAT_MESSAGE,
            "{actor} sent you a message",
            recipient="conversation_peer", entity_source="self",
        ),
        extra_immutable=frozenset({"conversation_id"}),
    ),
    EntitySpec(
        kind=EntityKind.CHAT_MESSAGE_LIKE,
        owner_field="username",
        operations=NO_UPDATE,
        parent=ParentLink(EntityKind.CHAT_MESSAGE, "message_id"),
        notify=NotifyRule(
            NotificationType.LIKE, NotificationEntityType.CHAT_MESSAGE,
            "{actor} liked your message",
        ),
    ),
    EntitySpec(
        kind=EntityKind.NOTIFICATION,
        owner_field="recipient_username",
        read_visibility=ReadVisibility.OWNER_OR_ADMIN,
        system_created=True,
        updatable_fields=frozenset({"is_read"}),
        field_limits=(
            FieldLimit("type", choices=frozenset(t.value for t in NotificationType)),
            FieldLimit(
                "entity_type",
                choices=frozenset(t.value for t in NotificationEntityType),
            ),
            _text("message", 500),
        ),
        extra_immutable=frozenset({"sender_username"}),
    ),
    EntitySpec(
        kind=EntityKind.FORBIDDEN_WORD,
        owner_field=None,
        read_visibility=ReadVisibility.ADMIN_ONLY,
        guest_writable=False,
        field_limits=(_text("word", 100),),
    ),
)

ENTITY_REGISTRY: dict[EntityKind, EntitySpec] = {spec.kind: spec for spec in _SPECS}

if set(ENTITY_REGISTRY) != set(EntityKind):
    raise RuntimeError(
        "Entity registry is missing: "
        + ", ".join(sorted(k.value for k in set(EntityKind) - set(ENTITY_REGISTRY)))
    )


def get_spec(kind: EntityKind | str) -> EntitySpec:
    """Look up a kind by enum or table name. Raises KeyError for unknown kinds."""
    try:
        return ENTITY_REGISTRY[EntityKind(kind)]
    except ValueError as e:
        raise KeyError(f"Unknown entity kind: {kind!r}") from e


def children_of(kind: EntityKind) -> list[EntitySpec]:
    """Kinds whose parent link points at `kind`, in registry order."""
    return [
        spec for spec in _SPECS
        if spec.parent is not None and spec.parent.kind == kind
    ]


def owner_of(kind: EntityKind, entity: dict | None) -> str | None:
    spec = ENTITY_REGISTRY[kind]
    if entity is None or spec.owner_field is None:
        return None
    return entity.get(spec.owner_field)
