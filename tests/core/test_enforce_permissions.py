"""Permission Enforcement — tests for the pure authorize() decision.

Tests cover:
    - delete is allowed iff owner or admin, for every owned kind
    - create requires the declared owner to be the caller (no admin override)
    - guests cannot create blog posts, marketplace items or chat messages
    - read visibility rules (published, active, conversation, recipient, admin)
    - only the two participants may post into a DM conversation
    - update rules: immutable fields, whitelist, admin-only flags, append-only kinds
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from fellowship.core.domain_types import EntityKind, Operation, Role
from fellowship.core.enforce_permissions import Decision, authorize
from fellowship.core.entity_registry import ENTITY_REGISTRY
from fellowship.core.identity import Identity, guest_identity

ALICE = Identity(id=uuid4(), username="alice")
BOB = Identity(id=uuid4(), username="bob")
ADMIN = Identity(id=uuid4(), username="gandalf", role=Role.ADMIN)
GUEST = guest_identity("1234567")


def _item(**overrides) -> dict:
    item = {
        "id": uuid4(), "seller_username": "alice", "title": "Sword",
        "description": "Sharp", "price": Decimal("5.00"), "is_active": True,
        "is_editor_choice": False,
    }
    item.update(overrides)
    return item


def _post(**overrides) -> dict:
    post = {
        "id": uuid4(), "author_username": "alice", "title": "Hello",
        "content": "Body", "is_published": True, "is_editor_choice": False,
    }
    post.update(overrides)
    return post


# ─── Decision ────────────────────────────────────────────────────

def test_decision_truthiness():
    assert Decision.allow()
    denied = Decision.deny("NOT_OWNER", "nope")
    assert not denied
    assert denied.code == "NOT_OWNER"


# ─── Delete: owner or admin ──────────────────────────────────────

OWNED_KINDS = [
    spec for spec in ENTITY_REGISTRY.values() if spec.owner_field is not None
]


@pytest.mark.parametrize("spec", OWNED_KINDS, ids=lambda s: s.kind.value)
@pytest.mark.parametrize("caller,owner,expected", [
    (ALICE, "alice", True),
    (BOB, "alice", False),
    (ADMIN, "alice", True),
    (GUEST, "1234567", True),
    (GUEST, "alice", False),
])
def test_delete_allowed_iff_owner_or_admin(spec, caller, owner, expected):
    entity = {"id": uuid4(), spec.owner_field: owner}
    assert bool(authorize(caller, spec.kind, Operation.DELETE, entity)) is expected


def test_admin_deletes_bobs_comment():
    comment = {"id": uuid4(), "pin_id": uuid4(), "username": "bob", "text": "hi"}
    assert authorize(ADMIN, EntityKind.COMMENT, Operation.DELETE, comment)


def test_delete_without_entity_is_denied():
    decision = authorize(ALICE, EntityKind.PIN, Operation.DELETE, None)
    assert decision.code == "ENTITY_REQUIRED"


# ─── Create ──────────────────────────────────────────────────────

def test_create_as_self_allowed():
    values = {"username": "alice", "lat": 1.0, "lng": 2.0, "description": ""}
    assert authorize(ALICE, EntityKind.PIN, Operation.CREATE, values)


def test_create_as_someone_else_denied():
    decision = authorize(ALICE, "pins", "create", {"username": "bob"})
    assert decision.code == "OWNER_MISMATCH"


def test_admin_cannot_create_on_behalf_of_others():
    decision = authorize(ADMIN, EntityKind.BLOG_POST, Operation.CREATE, _post())
    assert decision.code == "OWNER_MISMATCH"


def test_guest_may_like_a_pin():
    like = {"pin_id": uuid4(), "username": "1234567", "image_index": 0}
    assert authorize(GUEST, EntityKind.LIKE, Operation.CREATE, like)


@pytest.mark.parametrize("kind,owner_field", [
    (EntityKind.BLOG_POST, "author_username"),
    (EntityKind.MARKETPLACE_ITEM, "seller_username"),
    (EntityKind.CHAT_MESSAGE, "username"),
])
def test_guest_cannot_create_authenticated_only_kinds(kind, owner_field):
    decision = authorize(GUEST, kind, Operation.CREATE, {owner_field: "1234567"})
    assert decision.code == "AUTHENTICATION_REQUIRED"


def test_non_admin_cannot_set_editor_choice():
    decision = authorize(
        ALICE, EntityKind.BLOG_POST, Operation.CREATE,
        _post(is_editor_choice=True),
    )
    assert decision.code == "ADMIN_FIELD"


def test_forbidden_words_are_admin_only():
    assert authorize(ADMIN, EntityKind.FORBIDDEN_WORD, Operation.CREATE, {"word": "orc"})
    decision = authorize(ALICE, EntityKind.FORBIDDEN_WORD, Operation.CREATE, {"word": "orc"})
    assert decision.code == "ADMIN_REQUIRED"


# ─── Read ────────────────────────────────────────────────────────

def test_public_kinds_readable_by_guests():
    pin = {"id": uuid4(), "username": "alice"}
    assert authorize(GUEST, EntityKind.PIN, Operation.READ, pin)


def test_unpublished_post_visible_only_to_author():
    draft = _post(is_published=False)
    assert authorize(ALICE, EntityKind.BLOG_POST, Operation.READ, draft)
    assert not authorize(BOB, EntityKind.BLOG_POST, Operation.READ, draft)
    assert not authorize(ADMIN, EntityKind.BLOG_POST, Operation.READ, draft)


def test_inactive_item_hidden_from_everyone():
    inactive = _item(is_active=False)
    for caller in (ALICE, BOB, ADMIN, GUEST):
        assert authorize(caller, EntityKind.MARKETPLACE_ITEM, Operation.READ, inactive).code == "NOT_VISIBLE"


def test_dm_readable_by_participants_and_admin():
    msg = {"id": uuid4(), "conversation_id": "dm_alice_bob", "username": "alice"}
    assert authorize(ALICE, EntityKind.CHAT_MESSAGE, Operation.READ, msg)
    assert authorize(BOB, EntityKind.CHAT_MESSAGE, Operation.READ, msg)
    assert authorize(ADMIN, EntityKind.CHAT_MESSAGE, Operation.READ, msg)
    assert not authorize(GUEST, EntityKind.CHAT_MESSAGE, Operation.READ, msg)


def test_only_participants_post_into_a_dm():
    msg = {"conversation_id": "dm_bob_gandalf", "message": "hello"}
    decision = authorize(ALICE, EntityKind.CHAT_MESSAGE, Operation.CREATE, {**msg, "username": "alice"})
    assert decision.code == "NOT_PARTICIPANT"
    assert authorize(BOB, EntityKind.CHAT_MESSAGE, Operation.CREATE, {**msg, "username": "bob"})


def test_admin_cannot_post_into_someone_elses_dm():
    msg = {"conversation_id": "dm_alice_bob", "message": "hi", "username": "gandalf"}
    assert not authorize(ADMIN, EntityKind.CHAT_MESSAGE, Operation.CREATE, msg)


def test_anyone_signed_in_posts_into_pin_chat():
    msg = {"conversation_id": str(uuid4()), "message": "hi", "username": "alice"}
    assert authorize(ALICE, EntityKind.CHAT_MESSAGE, Operation.CREATE, msg)


def test_pin_chat_is_public():
    msg = {"id": uuid4(), "conversation_id": str(uuid4()), "username": "alice"}
    assert authorize(GUEST, EntityKind.CHAT_MESSAGE, Operation.READ, msg)


def test_notification_readable_by_recipient_or_admin():
    note = {"id": uuid4(), "recipient_username": "alice", "sender_username": "bob"}
    assert authorize(ALICE, EntityKind.NOTIFICATION, Operation.READ, note)
    assert authorize(ADMIN, EntityKind.NOTIFICATION, Operation.READ, note)
    assert not authorize(BOB, EntityKind.NOTIFICATION, Operation.READ, note)


# ─── Update ──────────────────────────────────────────────────────

def test_non_owner_cannot_update_marketplace_item():
    decision = authorize(
        BOB, EntityKind.MARKETPLACE_ITEM, Operation.UPDATE, _item(),
        {"price": Decimal("1.00")},
    )
    assert decision.code == "NOT_OWNER"


def test_owner_updates_marketplace_item():
    assert authorize(
        ALICE, EntityKind.MARKETPLACE_ITEM, Operation.UPDATE, _item(),
        {"price": Decimal("1.00")},
    )


def test_owner_cannot_change_owner_field():
    decision = authorize(
        ALICE, EntityKind.MARKETPLACE_ITEM, Operation.UPDATE, _item(),
        {"seller_username": "bob"},
    )
    assert decision.code == "IMMUTABLE_FIELD"


def test_excerpt_is_not_directly_writable():
    decision = authorize(
        ALICE, EntityKind.BLOG_POST, Operation.UPDATE, _post(), {"excerpt": "x"},
    )
    assert decision.code == "IMMUTABLE_FIELD"


def test_pin_authenticated_flag_is_not_writable():
    pin = {"id": uuid4(), "username": "1234567", "is_authenticated": False}
    for caller in (GUEST, ADMIN):
        decision = authorize(
            caller, EntityKind.PIN, Operation.UPDATE, pin, {"is_authenticated": True},
        )
        assert decision.code == "IMMUTABLE_FIELD"


def test_admin_can_toggle_editor_choice():
    assert authorize(
        ADMIN, EntityKind.PIN, Operation.UPDATE,
        {"id": uuid4(), "username": "alice", "is_editor_choice": False},
        {"is_editor_choice": True},
    )


def test_owner_cannot_toggle_editor_choice():
    decision = authorize(
        ALICE, EntityKind.PIN, Operation.UPDATE,
        {"id": uuid4(), "username": "alice", "is_editor_choice": True},
        {"is_editor_choice": False},
    )
    assert decision.code == "ADMIN_FIELD"


def test_notification_only_is_read_may_change():
    note = {"id": uuid4(), "recipient_username": "alice", "message": "m", "is_read": False}
    assert authorize(ALICE, EntityKind.NOTIFICATION, Operation.UPDATE, note, {"is_read": True})
    decision = authorize(
        ALICE, EntityKind.NOTIFICATION, Operation.UPDATE, note, {"message": "edited"},
    )
    assert decision.code == "FIELD_NOT_UPDATABLE"


def test_comments_cannot_be_updated():
    comment = {"id": uuid4(), "username": "alice", "text": "hi"}
    decision = authorize(ALICE, EntityKind.COMMENT, Operation.UPDATE, comment, {"text": "yo"})
    assert decision.code == "OPERATION_NOT_SUPPORTED"
