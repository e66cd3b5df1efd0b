"""Domain Types — verifies rich type definitions and enum values.

Tests:
    - NewType wrappers exist and are callable
    - EntityKind values are table names and round-trip through the enum
    - Closed vocabularies have exactly the expected members
"""

from uuid import uuid4

from fellowship.core.domain_types import (
    EntityId, ProfileId, Username,
    EntityKind, NotificationEntityType, NotificationType, Operation, Role,
    GUEST_USERNAME_PATTERN, EXCERPT_LENGTH, MAX_USERNAME_ATTEMPTS,
)


def test_identity_types_wrap_primitives():
    uid = uuid4()
    assert EntityId(uid) == uid
    assert ProfileId(uid) == uid
    assert Username("alice") == "alice"


def test_role_has_two_members():
    assert {r.value for r in Role} == {"user", "admin"}


def test_operation_has_four_members():
    assert {o.value for o in Operation} == {"read", "create", "update", "delete"}


def test_entity_kind_round_trips_through_table_name():
    assert EntityKind("comment_likes") is EntityKind.COMMENT_LIKE
    assert EntityKind.FORBIDDEN_WORD.value == "forbidden_usernames"
    assert EntityKind.PIN == "pins"


def test_notification_vocabularies():
    assert {t.value for t in NotificationType} == {"like", "comment", "message"}
    assert len(NotificationEntityType) == 6


def test_guest_pattern_is_exactly_seven_digits():
    assert GUEST_USERNAME_PATTERN.match("1234567")
    assert not GUEST_USERNAME_PATTERN.match("123456")
    assert not GUEST_USERNAME_PATTERN.match("12345678")
    assert not GUEST_USERNAME_PATTERN.match("12a4567")


def test_rule_constants():
    assert EXCERPT_LENGTH == 300
    assert MAX_USERNAME_ATTEMPTS == 10
