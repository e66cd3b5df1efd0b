"""Conversations — DM id construction and participant lookup.

Tests cover:
    - conversation_id is order-independent
    - other_participant works when usernames contain underscores
    - non-participants and pin chats resolve to None
"""

from fellowship.core.conversations import (
    conversation_id, is_direct_conversation, is_participant, other_participant,
)


def test_conversation_id_is_sorted():
    assert conversation_id("bob", "alice") == "dm_alice_bob"
    assert conversation_id("alice", "bob") == conversation_id("bob", "alice")


def test_is_direct_conversation():
    assert is_direct_conversation("dm_alice_bob")
    assert not is_direct_conversation("3f2b1c9e-pin-id")
    assert not is_direct_conversation(None)


def test_other_participant_simple():
    assert other_participant("dm_alice_bob", "alice") == "bob"
    assert other_participant("dm_alice_bob", "bob") == "alice"


def test_other_participant_with_underscored_usernames():
    conv = conversation_id("user_ab12cd34", "zed_x")
    assert other_participant(conv, "user_ab12cd34") == "zed_x"
    assert other_participant(conv, "zed_x") == "user_ab12cd34"


def test_other_participant_for_stranger_is_none():
    assert other_participant("dm_alice_bob", "carol") is None
    assert not is_participant("dm_alice_bob", "carol")


def test_other_participant_for_pin_chat_is_none():
    assert other_participant("some-pin-id", "alice") is None


def test_prefix_collision_is_not_participation():
    # "ali" is a prefix of "alice" but not a participant
    assert not is_participant("dm_alice_bob", "ali")
