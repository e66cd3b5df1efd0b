"""Field Constraint Enforcement — length, range and vocabulary checks per kind.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return error dict on violation, None on success
    - Limits come from the entity registry only; nothing is hard-coded here
    - Runs before any write: a violation means nothing was persisted

Design Decisions:
    - Return dicts (not exceptions), the same shape the permission checks use,
      so the shell raises one ValidationFailedError from either source
"""

from decimal import Decimal

from fellowship.core.domain_types import EntityKind
from fellowship.core.entity_registry import FieldLimit, get_spec


def check_field(limit: FieldLimit, value: object) -> dict | None:
    """Validate one value against one FieldLimit."""
    if value is None:
        if limit.min_length:
            return _error(limit.field, f"{limit.field} is required.")
        return None
    if limit.min_length is not None or limit.max_length is not None:
        if not isinstance(value, str):
            return _error(limit.field, f"{limit.field} must be text.")
        length = len(value.strip())
        if limit.min_length is not None and length < limit.min_length:
            return _error(
                limit.field,
                f"{limit.field} must be at least {limit.min_length} character(s).",
            )
        if limit.max_length is not None and len(value) > limit.max_length:
            return _error(
                limit.field,
                f"{limit.field} must be at most {limit.max_length} characters "
                f"(got {len(value)}).",
            )
    if limit.min_value is not None:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            return _error(limit.field, f"{limit.field} must be a number.")
        if value < limit.min_value:
            return _error(
                limit.field, f"{limit.field} must be >= {limit.min_value}.",
            )
    if limit.choices is not None and value not in limit.choices:
        return _error(
            limit.field,
            f"{limit.field} must be one of {sorted(limit.choices)}.",
        )
    return None


def check_fields(
    kind: EntityKind, values: dict, *, partial: bool = False,
) -> dict | None:
    """Validate a create payload (or, with partial=True, an update's changes).

    Missing fields are only an error on create, and only for limits that
    demand a non-empty value.
    """
    spec = get_spec(kind)
    for limit in spec.field_limits:
        if limit.field not in values:
            if partial:
                continue
            error = check_field(limit, None)
        else:
            error = check_field(limit, values[limit.field])
        if error:
            return error
    return None


def _error(field: str, message: str) -> dict:
    return {
        "status": "error",
        "error_code": "VALIDATION_FAILED",
        "field": field,
        "message": message,
    }
