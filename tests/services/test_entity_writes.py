"""Entity Write Service — authorize → write → triggers → commit against SQLite.

Tests cover:
    - owner defaulting and server-stamped pin fields
    - notification fan-out persisted in the same transaction
    - blog post excerpt persisted on create and recomputed on update
    - recursive cascade on delete (admin deletes bob's comment, pin delete)
    - denials, validation failures and conflicts leave the database unchanged
    - delete of a missing row is a no-op
    - a failing trigger rolls back the primary write
    - single blog post fetches count views
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from fellowship.core.domain_types import EntityKind
from fellowship.core.errors import (
    ConflictError, PermissionDeniedError, ResourceNotFoundError, ValidationFailedError,
)
from fellowship.models import (
    BlogPost, ChatMessage, Comment, CommentLike, Like, MarketplaceItem, Notification, Pin,
)
import fellowship.services.entity_writes as entity_writes_module
from fellowship.services.entity_writes import EntityWriteService


async def _count(session_factory, model, *where) -> int:
    async with session_factory() as session:
        query = select(func.count()).select_from(model)
        if where:
            query = query.where(*where)
        return (await session.execute(query)).scalar_one()


async def _pin(service, owner, **values) -> dict:
    return await service.create(owner, EntityKind.PIN, {"lat": 1.0, "lng": 2.0, **values})


# ─── Create ──────────────────────────────────────────────────────

async def test_create_pin_defaults_owner_to_caller(test_db, alice):
    pin = await _pin(EntityWriteService(test_db), alice, description="Bag End")
    assert pin["username"] == "alice"
    assert pin["is_authenticated"] is True
    assert pin["description"] == "Bag End"


async def test_guest_pin_is_not_authenticated(test_db, guest):
    pin = await _pin(EntityWriteService(test_db), guest)
    assert pin["username"] == "1234567"
    assert pin["is_authenticated"] is False


async def test_create_as_other_user_denied(test_db, test_session_factory, alice):
    with pytest.raises(PermissionDeniedError) as exc:
        await _pin(EntityWriteService(test_db), alice, username="bob")
    assert exc.value.deny_code == "OWNER_MISMATCH"
    assert await _count(test_session_factory, Pin) == 0


async def test_direct_notification_create_denied(test_db, alice):
    with pytest.raises(PermissionDeniedError) as exc:
        await EntityWriteService(test_db).create(alice, EntityKind.NOTIFICATION, {
            "recipient_username": "alice", "sender_username": "bob",
            "type": "like", "entity_type": "pin", "entity_id": uuid4(),
            "message": "fake",
        })
    assert exc.value.deny_code == "SYSTEM_MANAGED"


async def test_unknown_field_rejected(test_db, alice):
    with pytest.raises(ValidationFailedError):
        await _pin(EntityWriteService(test_db), alice, wizard=True)


async def test_comment_over_limit_rejected_before_write(test_db, test_session_factory, alice, bob):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    with pytest.raises(ValidationFailedError):
        await service.create(bob, EntityKind.COMMENT, {"pin_id": pin["id"], "text": "a" * 101})
    assert await _count(test_session_factory, Comment) == 0
    assert await _count(test_session_factory, Notification) == 0


async def test_like_on_missing_pin_is_not_found(test_db, bob):
    with pytest.raises(ResourceNotFoundError):
        await EntityWriteService(test_db).create(bob, EntityKind.LIKE, {"pin_id": uuid4()})


# ─── Notifications ───────────────────────────────────────────────

async def test_guest_like_notifies_pin_owner(test_db, test_session_factory, alice, guest):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    await service.create(guest, EntityKind.LIKE, {"pin_id": pin["id"], "image_index": 0})

    async with test_session_factory() as session:
        rows = (await session.execute(select(Notification))).scalars().all()
    assert len(rows) == 1
    note = rows[0]
    assert note.recipient_username == "alice"
    assert note.sender_username == "1234567"
    assert note.type == "like"
    assert note.entity_id == pin["id"]
    assert note.is_read is False


async def test_self_like_creates_no_notification(test_db, test_session_factory, alice):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    await service.create(alice, EntityKind.LIKE, {"pin_id": pin["id"]})
    assert await _count(test_session_factory, Like) == 1
    assert await _count(test_session_factory, Notification) == 0


async def test_duplicate_like_is_conflict(test_db, test_session_factory, alice, bob):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    await service.create(bob, EntityKind.LIKE, {"pin_id": pin["id"], "image_index": 0})
    with pytest.raises(ConflictError):
        await service.create(bob, EntityKind.LIKE, {"pin_id": pin["id"], "image_index": 0})
    assert await _count(test_session_factory, Like) == 1
    assert await _count(test_session_factory, Notification) == 1


async def test_direct_message_notifies_peer(test_db, test_session_factory, alice, bob):
    msg = await EntityWriteService(test_db).create(bob, EntityKind.CHAT_MESSAGE, {
        "conversation_id": "dm_alice_bob", "message": "Second breakfast?",
    })
    async with test_session_factory() as session:
        note = (await session.execute(select(Notification))).scalar_one()
    assert note.recipient_username == "alice"
    assert note.type == "message"
    assert note.entity_id == msg["id"]


async def test_outsider_cannot_post_into_direct_message(test_db, test_session_factory, alice):
    with pytest.raises(PermissionDeniedError) as exc:
        await EntityWriteService(test_db).create(alice, EntityKind.CHAT_MESSAGE, {
            "conversation_id": "dm_bob_gandalf", "message": "let me in",
        })
    assert exc.value.deny_code == "NOT_PARTICIPANT"
    assert await _count(test_session_factory, ChatMessage) == 0
    assert await _count(test_session_factory, Notification) == 0

# ─── Blog excerpt ────────────────────────────────────────────────

async def test_blog_post_excerpt_persisted_on_create(test_db, test_session_factory, alice):
    post = await EntityWriteService(test_db).create(alice, EntityKind.BLOG_POST, {
        "title": "Long road", "content": "<p>" + "a" * 1500 + "</p>",
    })
    async with test_session_factory() as session:
        stored = await session.get(BlogPost, post["id"])
    assert len(stored.excerpt) == 303
    assert stored.excerpt.startswith("aaa")


async def test_blog_post_excerpt_recomputed_on_update(test_db, alice):
    service = EntityWriteService(test_db)
    post = await service.create(alice, EntityKind.BLOG_POST, {"title": "T", "content": "old"})
    updated = await service.update(alice, EntityKind.BLOG_POST, post["id"], {"content": "<b>new</b>"})
    assert updated["excerpt"] == "new"
    assert updated["updated_at"] >= post["updated_at"]


# ─── Update ──────────────────────────────────────────────────────

async def test_non_owner_marketplace_update_denied_and_unchanged(
    test_db, test_session_factory, alice, bob,
):
    service = EntityWriteService(test_db)
    item = await service.create(alice, EntityKind.MARKETPLACE_ITEM, {
        "title": "Elven cloak", "description": "Barely worn", "price": Decimal("20.00"),
    })
    with pytest.raises(PermissionDeniedError) as exc:
        await service.update(bob, EntityKind.MARKETPLACE_ITEM, item["id"], {"price": Decimal("0")})
    assert exc.value.deny_code == "NOT_OWNER"

    async with test_session_factory() as session:
        stored = await session.get(MarketplaceItem, item["id"])
    assert stored.price == Decimal("20.00")


async def test_guest_cannot_flip_pin_authenticated_flag(test_db, test_session_factory, guest):
    service = EntityWriteService(test_db)
    pin = await _pin(service, guest)
    with pytest.raises(PermissionDeniedError) as exc:
        await service.update(guest, EntityKind.PIN, pin["id"], {"is_authenticated": True})
    assert exc.value.deny_code == "IMMUTABLE_FIELD"

    async with test_session_factory() as session:
        stored = await session.get(Pin, pin["id"])
    assert stored.is_authenticated is False


async def test_update_missing_row_is_not_found(test_db, alice):
    with pytest.raises(ResourceNotFoundError):
        await EntityWriteService(test_db).update(alice, EntityKind.PIN, uuid4(), {"description": "x"})


# ─── Delete ──────────────────────────────────────────────────────

async def test_admin_deletes_bobs_comment_and_its_likes(
    test_db, test_session_factory, alice, bob, admin,
):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    comment = await service.create(bob, EntityKind.COMMENT, {"pin_id": pin["id"], "text": "Po-tay-toes"})
    await service.create(alice, EntityKind.COMMENT_LIKE, {"comment_id": comment["id"]})

    assert await service.delete(admin, EntityKind.COMMENT, comment["id"]) is True

    assert await _count(test_session_factory, Comment) == 0
    assert await _count(test_session_factory, CommentLike) == 0
    assert await _count(test_session_factory, Pin) == 1


async def test_pin_delete_cascades_to_all_descendants(test_db, test_session_factory, alice, bob):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    comment = await service.create(bob, EntityKind.COMMENT, {"pin_id": pin["id"], "text": "hi"})
    await service.create(alice, EntityKind.COMMENT_LIKE, {"comment_id": comment["id"]})
    await service.create(bob, EntityKind.LIKE, {"pin_id": pin["id"]})

    await service.delete(alice, EntityKind.PIN, pin["id"])

    for model in (Pin, Comment, CommentLike, Like):
        assert await _count(test_session_factory, model) == 0
    # notifications are history, not children
    assert await _count(test_session_factory, Notification) == 3


async def test_non_owner_delete_denied(test_db, test_session_factory, alice, bob):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    with pytest.raises(PermissionDeniedError):
        await service.delete(bob, EntityKind.PIN, pin["id"])
    assert await _count(test_session_factory, Pin) == 1


async def test_delete_missing_row_is_noop(test_db, alice):
    service = EntityWriteService(test_db)
    pin = await _pin(service, alice)
    assert await service.delete(alice, EntityKind.PIN, pin["id"]) is True
    assert await service.delete(alice, EntityKind.PIN, pin["id"]) is False


# ─── Read ────────────────────────────────────────────────────────

async def test_list_visible_hides_other_authors_drafts(test_db, alice, bob):
    service = EntityWriteService(test_db)
    await service.create(alice, EntityKind.BLOG_POST, {"title": "Draft", "content": "wip"})
    await service.create(alice, EntityKind.BLOG_POST, {
        "title": "Live", "content": "done", "is_published": True,
    })
    assert {p["title"] for p in await service.list_visible(alice, EntityKind.BLOG_POST)} == {"Draft", "Live"}
    assert [p["title"] for p in await service.list_visible(bob, EntityKind.BLOG_POST)] == ["Live"]


async def test_stranger_cannot_read_direct_message(test_db, alice, bob, guest):
    service = EntityWriteService(test_db)
    msg = await service.create(alice, EntityKind.CHAT_MESSAGE, {
        "conversation_id": "dm_alice_bob", "message": "psst",
    })
    assert (await service.read(bob, EntityKind.CHAT_MESSAGE, msg["id"]))["message"] == "psst"
    with pytest.raises(PermissionDeniedError):
        await service.read(guest, EntityKind.CHAT_MESSAGE, msg["id"])


async def test_single_blog_post_fetch_counts_views(test_db, test_session_factory, alice, bob):
    service = EntityWriteService(test_db)
    post = await service.create(alice, EntityKind.BLOG_POST, {
        "title": "There and back", "content": "again", "is_published": True,
    })
    assert post["view_count"] == 0

    assert (await service.read(bob, EntityKind.BLOG_POST, post["id"]))["view_count"] == 1
    assert (await service.read(alice, EntityKind.BLOG_POST, post["id"]))["view_count"] == 2
    await service.list_visible(bob, EntityKind.BLOG_POST)

    async with test_session_factory() as session:
        stored = await session.get(BlogPost, post["id"])
    assert stored.view_count == 2


async def test_hidden_draft_fetch_counts_no_view(test_db, test_session_factory, alice, bob):
    service = EntityWriteService(test_db)
    post = await service.create(alice, EntityKind.BLOG_POST, {"title": "Draft", "content": "wip"})
    with pytest.raises(PermissionDeniedError):
        await service.read(bob, EntityKind.BLOG_POST, post["id"])

    async with test_session_factory() as session:
        stored = await session.get(BlogPost, post["id"])
    assert stored.view_count == 0


# ─── Trigger failure ─────────────────────────────────────────────

def _broken_triggers(*args, **kwargs):
    raise RuntimeError("trigger exploded")


async def test_trigger_failure_rolls_back_create(
    test_db, test_session_factory, alice, monkeypatch,
):
    monkeypatch.setattr(entity_writes_module, "on_write", _broken_triggers)
    with pytest.raises(RuntimeError):
        await EntityWriteService(test_db).create(alice, EntityKind.BLOG_POST, {
            "title": "Doomed", "content": "never saved",
        })
    assert await _count(test_session_factory, BlogPost) == 0


async def test_trigger_failure_rolls_back_update(
    test_db, test_session_factory, alice, monkeypatch,
):
    service = EntityWriteService(test_db)
    post = await service.create(alice, EntityKind.BLOG_POST, {"title": "Kept", "content": "original"})

    monkeypatch.setattr(entity_writes_module, "on_write", _broken_triggers)
    with pytest.raises(RuntimeError):
        await service.update(alice, EntityKind.BLOG_POST, post["id"], {"content": "rewritten"})

    async with test_session_factory() as session:
        stored = await session.get(BlogPost, post["id"])
    assert stored.content == "original"
    assert stored.excerpt == "original"
