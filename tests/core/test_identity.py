"""Identity — guest vs authenticated callers and ownership.

Tests cover:
    - guest_identity accepts only 7-digit names
    - guests are never admin, even with an admin role
    - authenticated_identity reads username/role from the profile snapshot
"""

from uuid import uuid4

import pytest

from fellowship.core.domain_types import Role
from fellowship.core.identity import (
    Identity, authenticated_identity, guest_identity, is_guest_username,
)


def test_guest_identity_for_seven_digits():
    guest = guest_identity("1234567")
    assert guest.is_guest
    assert guest.id is None
    assert not guest.is_authenticated
    assert not guest.is_admin


@pytest.mark.parametrize("name", ["", "123456", "12345678", "alice", "123 4567"])
def test_guest_identity_rejects_malformed_names(name):
    with pytest.raises(ValueError):
        guest_identity(name)


def test_is_guest_username_handles_none():
    assert not is_guest_username(None)


def test_guest_with_admin_role_is_not_admin():
    guest = Identity(id=None, username="1234567", role=Role.ADMIN, is_guest=True)
    assert not guest.is_admin


def test_authenticated_identity_from_profile():
    pid = uuid4()
    ident = authenticated_identity({"id": pid, "username": "alice", "role": "admin"})
    assert ident.id == pid
    assert ident.username == "alice"
    assert ident.is_admin
    assert ident.is_authenticated


def test_authenticated_identity_defaults_to_user_role():
    ident = authenticated_identity({"id": uuid4(), "username": "bob", "role": None})
    assert ident.role == Role.USER


def test_owns_compares_usernames():
    alice = Identity(id=uuid4(), username="alice")
    assert alice.owns("alice")
    assert not alice.owns("bob")
    assert not alice.owns(None)
