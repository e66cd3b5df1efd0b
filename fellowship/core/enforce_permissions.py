"""Permission Engine — decides who may read, create, update or delete each entity.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Individual checks return an error dict on violation, None on success
    - authorize() chains the checks for one operation; first error wins
    - Admin override wins for UPDATE/DELETE; owner-and-admin is a single Allow
    - Guests never pass an admin check and own content by username equality only
    - Kinds without an owner field are admin-managed for every operation
    - Only the two participants of a DM conversation may post into it

Design Decisions:
    - Ownership compares the entity's owner column with the CALLER's resolved
      username (never a column with itself)
    - Notification create is unrestricted: it models an internal side effect,
      and the trigger layer is its only producer in this codebase
    - Decision is a frozen dataclass so callers can log or raise on it without
      re-running the checks
"""

from dataclasses import dataclass

from fellowship.core.conversations import is_direct_conversation, is_participant
from fellowship.core.domain_types import EntityKind, Operation, ReadVisibility
from fellowship.core.entity_registry import EntitySpec, get_spec
from fellowship.core.identity import Identity


@dataclass(frozen=True)
class Decision:
    """Allow, or Deny with a machine code and a human reason."""
    allowed: bool
    code: str | None = None
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, code: str, reason: str) -> "Decision":
        return cls(False, code, reason)

    def __bool__(self) -> bool:
        return self.allowed


# --- Shared checks -----------------------------------------------------------

def check_operation_supported(spec: EntitySpec, operation: Operation) -> dict | None:
    """Kinds only expose the operations their registry entry lists."""
    if not spec.supports(operation):
        return _error(
            "OPERATION_NOT_SUPPORTED",
            f"{operation.value} is not supported on {spec.kind.value}.",
        )
    return None


def check_admin_managed(spec: EntitySpec, identity: Identity) -> dict | None:
    """Ownerless kinds (forbidden words) are admin-only for every operation."""
    if spec.owner_field is None and not identity.is_admin:
        return _error(
            "ADMIN_REQUIRED",
            f"Only admins may access {spec.kind.value}.",
        )
    return None


def check_entity_present(
    spec: EntitySpec, operation: Operation, entity: dict | None,
) -> dict | None:
    if entity is None:
        return _error(
            "ENTITY_REQUIRED",
            f"{operation.value} on {spec.kind.value} needs the entity state.",
        )
    return None


# --- READ --------------------------------------------------------------------

def check_read_visibility(
    spec: EntitySpec, identity: Identity, entity: dict,
) -> dict | None:
    """Apply the kind's ReadVisibility rule to one row."""
    visibility = spec.read_visibility
    owner = entity.get(spec.owner_field) if spec.owner_field else None

    if visibility == ReadVisibility.PUBLIC:
        return None
    if visibility == ReadVisibility.ACTIVE_ONLY:
        if entity.get("is_active", True):
            return None
        return _error("NOT_VISIBLE", "This listing is no longer active.")
    if visibility == ReadVisibility.PUBLISHED_OR_AUTHOR:
        if entity.get("is_published") or identity.owns(owner):
            return None
        return _error("NOT_VISIBLE", "This post is not published.")
    if visibility == ReadVisibility.OWNER_OR_ADMIN:
        if identity.owns(owner) or identity.is_admin:
            return None
        return _error("NOT_VISIBLE", "Only the recipient may read this.")
    if visibility == ReadVisibility.CONVERSATION:
        conv_id = entity.get("conversation_id")
        if not is_direct_conversation(conv_id):
            return None
        if identity.is_admin or is_participant(conv_id, identity.username):
            return None
        return _error(
            "NOT_VISIBLE", "Only conversation participants may read this.",
        )
    if visibility == ReadVisibility.ADMIN_ONLY:
        if identity.is_admin:
            return None
        return _error("ADMIN_REQUIRED", "Only admins may read this.")
    return _error("NOT_VISIBLE", f"Unknown visibility rule {visibility!r}.")


# --- CREATE ------------------------------------------------------------------

def check_guest_writable(spec: EntitySpec, identity: Identity) -> dict | None:
    if identity.is_guest and not spec.guest_writable:
        return _error(
            "AUTHENTICATION_REQUIRED",
            f"Guests cannot create {spec.kind.value}. Sign in first.",
        )
    return None


def check_create_ownership(
    spec: EntitySpec, identity: Identity, entity: dict,
) -> dict | None:
    """The declared owner must be the caller. Admins get no override here."""
    if spec.owner_field is None:
        return None
    declared = entity.get(spec.owner_field)
    if not identity.owns(declared):
        return _error(
            "OWNER_MISMATCH",
            f"Cannot create {spec.kind.value} as '{declared}' "
            f"while signed in as '{identity.username}'.",
        )
    return None


def check_conversation_membership(
    spec: EntitySpec, identity: Identity, entity: dict,
) -> dict | None:
    """Only the two participants may post into a DM conversation."""
    if spec.read_visibility != ReadVisibility.CONVERSATION:
        return None
    conv_id = entity.get("conversation_id")
    if not is_direct_conversation(conv_id):
        return None
    if not is_participant(conv_id, identity.username):
        return _error(
            "NOT_PARTICIPANT",
            "Only conversation participants may post in this conversation.",
        )
    return None


def check_admin_only_fields(
    spec: EntitySpec, identity: Identity, values: dict,
) -> dict | None:
    """Editor's-choice style flags can only be set by admins."""
    if identity.is_admin:
        return None
    touched = sorted(
        f for f in spec.admin_only_fields
        if f in values and values[f] not in (None, False)
    )
    if touched:
        return _error(
            "ADMIN_FIELD",
            f"Only admins may set: {', '.join(touched)}.",
        )
    return None


# --- UPDATE / DELETE ---------------------------------------------------------

def check_owner_or_admin(
    spec: EntitySpec, identity: Identity, entity: dict,
) -> dict | None:
    """Rule: caller owns the row, or caller is admin."""
    if identity.is_admin:
        return None
    if spec.owner_field and identity.owns(entity.get(spec.owner_field)):
        return None
    return _error(
        "NOT_OWNER",
        f"Only the owner or an admin may modify this {spec.kind.value} row.",
    )


def check_immutable_fields(spec: EntitySpec, changes: dict) -> dict | None:
    frozen = sorted(f for f in changes if f in spec.immutable_fields)
    if frozen:
        return _error(
            "IMMUTABLE_FIELD",
            f"Cannot change: {', '.join(frozen)}.",
        )
    return None


def check_updatable_fields(spec: EntitySpec, changes: dict) -> dict | None:
    """Kinds with an updatable_fields whitelist reject anything outside it."""
    if spec.updatable_fields is None:
        return None
    extra = sorted(f for f in changes if f not in spec.updatable_fields)
    if extra:
        return _error(
            "FIELD_NOT_UPDATABLE",
            f"Only {', '.join(sorted(spec.updatable_fields))} may change "
            f"on {spec.kind.value}; got {', '.join(extra)}.",
        )
    return None


def check_admin_field_changes(
    spec: EntitySpec, identity: Identity, entity: dict, changes: dict,
) -> dict | None:
    """Non-admins may not flip admin-only flags in either direction."""
    if identity.is_admin:
        return None
    touched = sorted(
        f for f in spec.admin_only_fields
        if f in changes and changes[f] != entity.get(f)
    )
    if touched:
        return _error(
            "ADMIN_FIELD",
            f"Only admins may change: {', '.join(touched)}.",
        )
    return None


# --- Entry point -------------------------------------------------------------

def authorize(
    identity: Identity,
    kind: EntityKind | str,
    operation: Operation | str,
    entity: dict | None = None,
    changes: dict | None = None,
) -> Decision:
    """Allow or Deny `operation` by `identity` on `entity` of `kind`.

    For CREATE, `entity` is the payload being inserted. For UPDATE, `changes`
    holds only the fields being written; omitting it checks ownership alone.
    """
    spec = get_spec(kind)
    operation = Operation(operation)
    changes = changes or {}

    error = (
        check_operation_supported(spec, operation)
        or check_admin_managed(spec, identity)
    )
    if error is None:
        if operation == Operation.READ:
            error = (
                check_entity_present(spec, operation, entity)
                or check_read_visibility(spec, identity, entity)
            )
        elif operation == Operation.CREATE:
            error = check_entity_present(spec, operation, entity)
            if error is None and not spec.system_created:
                error = (
                    check_guest_writable(spec, identity)
                    or check_create_ownership(spec, identity, entity)
                    or check_conversation_membership(spec, identity, entity)
                    or check_admin_only_fields(spec, identity, entity)
                )
        elif operation == Operation.UPDATE:
            error = (
                check_entity_present(spec, operation, entity)
                or check_owner_or_admin(spec, identity, entity)
                or check_immutable_fields(spec, changes)
                or check_updatable_fields(spec, changes)
                or check_admin_field_changes(spec, identity, entity, changes)
            )
        else:
            error = (
                check_entity_present(spec, operation, entity)
                or check_owner_or_admin(spec, identity, entity)
            )

    if error:
        return Decision.deny(error["error_code"], error["message"])
    return Decision.allow()


def _error(code: str, message: str) -> dict:
    return {"status": "error", "error_code": code, "message": message}
