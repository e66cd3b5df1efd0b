"""Entity Write Service — the write path every create/update/delete goes through.

Invariants:
    - One transaction per call: authorize, field check, primary write, trigger
      writes and commit succeed together or roll back together
    - Nothing is written before authorize() and check_fields() both pass
    - Delete of a missing row is a no-op (returns False); update of a missing
      row raises ResourceNotFoundError
    - Deleting a row removes every descendant listed by the entity registry
      before the row itself

Design Decisions:
    - Impureim sandwich: load rows (IO) → pure core decides → apply (IO)
    - Cascade walks the registry with bulk DELETEs, so it does not depend on
      which ORM objects happen to be loaded in the session
    - Reads of non-public rows go through the same authorize() as writes
    - Fetching one blog post counts a view; listing does not
"""

import logging
from uuid import UUID

from sqlalchemy import delete, inspect, select
from sqlalchemy import update as sql_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.config import Settings, get_settings
from fellowship.core.consistency_triggers import DerivedWrite, on_write
from fellowship.core.domain_types import EntityKind, Operation
from fellowship.core.enforce_fields import check_fields
from fellowship.core.enforce_permissions import authorize
from fellowship.core.entity_registry import EntitySpec, children_of, get_spec
from fellowship.core.errors import (
    ConflictError,
    ErrorContext,
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from fellowship.core.identity import Identity
from fellowship.db.base import Base
from fellowship.models import MODELS_BY_KIND

logger = logging.getLogger(__name__)


def column_keys(model: type[Base]) -> set[str]:
    return {attr.key for attr in inspect(model).column_attrs}


class EntityWriteService:
    """Authorized CRUD for every entity kind, with triggers applied in-transaction."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    # ─── Reads ───────────────────────────────────────────────────

    async def get_row(self, kind: EntityKind, entity_id: UUID) -> Base | None:
        return await self.db.get(MODELS_BY_KIND[EntityKind(kind)], entity_id)

    async def read(
        self, identity: Identity, kind: EntityKind | str, entity_id: UUID,
    ) -> dict:
        kind = EntityKind(kind)
        row = await self._get_or_404(kind, entity_id)
        snapshot = row.to_snapshot()
        self._require(identity, kind, Operation.READ, snapshot)
        if kind == EntityKind.BLOG_POST:
            snapshot = await self._count_view(row)
        return snapshot

    async def list_visible(
        self,
        identity: Identity,
        kind: EntityKind | str,
        filters: dict | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict]:
        """Newest-first rows of `kind` the caller may read.

        filters are equality matches on column names; unknown columns raise
        ValidationFailedError. Rows the caller cannot see are skipped, so a
        page may hold fewer than `limit` rows.
        """
        kind = EntityKind(kind)
        model = MODELS_BY_KIND[kind]
        self._require_supported(identity, kind, Operation.READ)
        query = select(model)
        for name, value in (filters or {}).items():
            self._check_known_fields(kind, model, [name])
            query = query.where(getattr(model, name) == value)
        query = query.order_by(model.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return [
            snapshot
            for snapshot in (row.to_snapshot() for row in result.scalars().all())
            if authorize(identity, kind, Operation.READ, snapshot)
        ]

    # ─── Writes ──────────────────────────────────────────────────

    async def create(
        self, identity: Identity, kind: EntityKind | str, values: dict,
    ) -> dict:
        kind = EntityKind(kind)
        spec = get_spec(kind)
        model = MODELS_BY_KIND[kind]
        if spec.system_created:
            raise PermissionDeniedError(
                f"{kind.value} rows are only created by write triggers.",
                "SYSTEM_MANAGED",
                ErrorContext(username=identity.username, entity_kind=kind.value,
                             operation="create"),
            )
        values = self._with_server_fields(identity, spec, dict(values))

        self._check_known_fields(kind, model, values)
        self._require(identity, kind, Operation.CREATE, values)
        self._raise_on_field_error(kind, check_fields(kind, values))
        target = await self._load_target(spec, values)

        row = model(**values)
        self.db.add(row)
        try:
            await self.db.flush()
            derived = on_write(
                kind, None, row.to_snapshot(), identity, target,
                excerpt_length=self.settings.excerpt_length,
            )
            await self._apply(derived, row)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                f"Create rejected by constraint: {e.orig}",
                extra={"username": identity.username, "entity_kind": kind.value},
            )
            raise ConflictError(
                f"{kind.value} row conflicts with an existing record",
                ErrorContext(username=identity.username, entity_kind=kind.value,
                             operation="create"),
            )
        except Exception:
            await self.db.rollback()
            raise

        snapshot = row.to_snapshot()
        logger.info(
            f"Created {kind.value} ({len(derived)} derived write(s))",
            extra={"username": identity.username, "entity_kind": kind.value,
                   "entity_id": str(snapshot["id"])},
        )
        return snapshot

    async def update(
        self,
        identity: Identity,
        kind: EntityKind | str,
        entity_id: UUID,
        changes: dict,
    ) -> dict:
        kind = EntityKind(kind)
        model = MODELS_BY_KIND[kind]
        row = await self._get_or_404(kind, entity_id)
        before = row.to_snapshot()

        self._check_known_fields(kind, model, changes)
        self._require(identity, kind, Operation.UPDATE, before, changes)
        self._raise_on_field_error(kind, check_fields(kind, changes, partial=True))

        for name, value in changes.items():
            setattr(row, name, value)
        try:
            await self.db.flush()
            derived = on_write(
                kind, before, row.to_snapshot(), identity,
                excerpt_length=self.settings.excerpt_length,
            )
            await self._apply(derived, row)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(f"Update conflicts with an existing record: {e.orig}")
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Updated {kind.value}: {', '.join(sorted(changes))}",
            extra={"username": identity.username, "entity_kind": kind.value,
                   "entity_id": str(entity_id)},
        )
        return row.to_snapshot()

    async def delete(
        self, identity: Identity, kind: EntityKind | str, entity_id: UUID,
    ) -> bool:
        """Delete a row and its descendants. False when it was already gone."""
        kind = EntityKind(kind)
        row = await self.get_row(kind, entity_id)
        if row is None:
            logger.info(
                f"{kind.value} already deleted",
                extra={"username": identity.username, "entity_kind": kind.value,
                       "entity_id": str(entity_id)},
            )
            return False

        self._require(identity, kind, Operation.DELETE, row.to_snapshot())
        try:
            removed = await self._cascade_delete(kind, [row.id])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Deleted {kind.value} and {removed - 1} descendant row(s)",
            extra={"username": identity.username, "entity_kind": kind.value,
                   "entity_id": str(entity_id)},
        )
        return True

    # ─── Internals ───────────────────────────────────────────────

    async def _count_view(self, row: Base) -> dict:
        """Bump view_count on a single blog post fetch; commits."""
        model = type(row)
        try:
            await self.db.execute(
                sql_update(model)
                .where(model.id == row.id)
                .values(view_count=model.view_count + 1),
            )
            await self.db.commit()
            await self.db.refresh(row)
        except Exception:
            await self.db.rollback()
            raise
        return row.to_snapshot()

    async def _cascade_delete(self, kind: EntityKind, ids: list) -> int:
        """Delete rows `ids` of `kind` after all their descendants. Returns row count."""
        removed = 0
        for child in children_of(kind):
            child_model = MODELS_BY_KIND[child.kind]
            fk = getattr(child_model, child.parent.fk_field)
            result = await self.db.execute(
                select(child_model.id).where(fk.in_(ids)),
            )
            child_ids = list(result.scalars().all())
            if child_ids:
                removed += await self._cascade_delete(child.kind, child_ids)
        model = MODELS_BY_KIND[kind]
        result = await self.db.execute(delete(model).where(model.id.in_(ids)))
        return removed + (result.rowcount or 0)

    async def _apply(self, derived: list[DerivedWrite], primary: Base) -> None:
        for write in derived:
            model = MODELS_BY_KIND[write.kind]
            if write.operation == Operation.CREATE:
                self.db.add(model(**write.values))
                continue
            if isinstance(primary, model) and primary.id == write.entity_id:
                target = primary
            else:
                target = await self.db.get(model, write.entity_id)
            if target is None:
                raise ResourceNotFoundError(write.kind.value, str(write.entity_id))
            for name, value in write.values.items():
                setattr(target, name, value)
        if derived:
            await self.db.flush()

    async def _load_target(self, spec: EntitySpec, values: dict) -> dict | None:
        """Parent row snapshot for a new child row; 404 if the parent is missing."""
        if spec.parent is None:
            return None
        parent_id = values.get(spec.parent.fk_field)
        if parent_id is None:
            raise ValidationFailedError(
                f"{spec.parent.fk_field} is required.", spec.parent.fk_field,
            )
        parent = await self.get_row(spec.parent.kind, parent_id)
        if parent is None:
            raise ResourceNotFoundError(spec.parent.kind.value, str(parent_id))
        return parent.to_snapshot()

    def _with_server_fields(
        self, identity: Identity, spec: EntitySpec, values: dict,
    ) -> dict:
        """Fill the owner with the caller when omitted; stamp server-owned flags."""
        if spec.owner_field and not spec.system_created:
            values.setdefault(spec.owner_field, identity.username)
        if spec.kind == EntityKind.PIN:
            values["is_authenticated"] = identity.is_authenticated
        return values

    def _check_known_fields(self, kind: EntityKind, model: type[Base], names) -> None:
        unknown = sorted(set(names) - column_keys(model))
        if unknown:
            raise ValidationFailedError(
                f"Unknown field(s) for {kind.value}: {', '.join(unknown)}",
                unknown[0],
            )

    def _raise_on_field_error(self, kind: EntityKind, error: dict | None) -> None:
        if error:
            raise ValidationFailedError(
                error["message"], error["field"],
                ErrorContext(entity_kind=kind.value),
            )

    def _require_supported(
        self, identity: Identity, kind: EntityKind, operation: Operation,
    ) -> None:
        spec = get_spec(kind)
        if not spec.supports(operation) or (
            spec.owner_field is None and not identity.is_admin
        ):
            raise PermissionDeniedError(
                f"{operation.value} on {kind.value} is not allowed.",
                "ADMIN_REQUIRED",
                ErrorContext(username=identity.username, entity_kind=kind.value,
                             operation=operation.value),
            )

    def _require(
        self,
        identity: Identity,
        kind: EntityKind,
        operation: Operation,
        entity: dict,
        changes: dict | None = None,
    ) -> None:
        decision = authorize(identity, kind, operation, entity, changes)
        if decision:
            return
        entity_id = entity.get("id")
        logger.warning(
            f"Denied {operation.value} on {kind.value}: {decision.reason}",
            extra={"username": identity.username, "entity_kind": kind.value,
                   "entity_id": str(entity_id) if entity_id else None,
                   "deny_code": decision.code},
        )
        raise PermissionDeniedError(
            decision.reason, decision.code,
            ErrorContext(
                username=identity.username, entity_kind=kind.value,
                entity_id=str(entity_id) if entity_id else None,
                operation=operation.value,
            ),
        )

    async def _get_or_404(self, kind: EntityKind, entity_id: UUID) -> Base:
        row = await self.get_row(kind, entity_id)
        if row is None:
            raise ResourceNotFoundError(kind.value, str(entity_id))
        return row
