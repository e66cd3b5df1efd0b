"""Field Enforcement — tests for pure per-kind field limits.

Tests cover:
    - text limits count stripped length for the minimum
    - missing required fields fail on create but not on partial updates
    - numeric minimums (price, image_index) and enum choices
"""

from decimal import Decimal

from fellowship.core.domain_types import EntityKind
from fellowship.core.enforce_fields import check_field, check_fields
from fellowship.core.entity_registry import FieldLimit


# ─── check_field ─────────────────────────────────────────────────

def test_blank_text_fails_min_length():
    error = check_field(FieldLimit("text", min_length=1, max_length=100), "   ")
    assert error["error_code"] == "VALIDATION_FAILED"
    assert error["field"] == "text"


def test_text_over_max_fails():
    error = check_field(FieldLimit("text", min_length=1, max_length=100), "x" * 101)
    assert error is not None
    assert "at most 100" in error["message"]


def test_text_at_max_passes():
    assert check_field(FieldLimit("text", min_length=1, max_length=100), "x" * 100) is None


def test_non_text_value_for_text_limit_fails():
    assert check_field(FieldLimit("title", max_length=10), 42) is not None


def test_negative_price_fails():
    assert check_field(FieldLimit("price", min_value=0), Decimal("-0.01")) is not None


def test_bool_is_not_a_number():
    assert check_field(FieldLimit("image_index", min_value=0), True) is not None


def test_choices():
    limit = FieldLimit("type", choices=frozenset({"like", "comment"}))
    assert check_field(limit, "like") is None
    assert check_field(limit, "poke") is not None


# ─── check_fields ────────────────────────────────────────────────

def test_comment_create_requires_text():
    error = check_fields(EntityKind.COMMENT, {"pin_id": "p", "username": "alice"})
    assert error["field"] == "text"


def test_comment_with_101_chars_rejected():
    error = check_fields(EntityKind.COMMENT, {"text": "a" * 101})
    assert error["field"] == "text"


def test_partial_update_skips_missing_fields():
    assert check_fields(EntityKind.BLOG_POST, {"is_published": True}, partial=True) is None


def test_partial_update_still_checks_present_fields():
    error = check_fields(EntityKind.BLOG_POST, {"title": ""}, partial=True)
    assert error["field"] == "title"


def test_pin_description_may_be_empty():
    assert check_fields(EntityKind.PIN, {"description": ""}) is None


def test_valid_marketplace_item_passes():
    values = {"title": "Sword", "description": "Slightly used", "price": Decimal("10.00")}
    assert check_fields(EntityKind.MARKETPLACE_ITEM, values) is None


def test_free_marketplace_item_passes():
    values = {"title": "Map", "description": "Free to a good home", "price": 0}
    assert check_fields(EntityKind.MARKETPLACE_ITEM, values) is None
