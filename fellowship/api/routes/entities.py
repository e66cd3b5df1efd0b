"""Entity Routes — generic authorized CRUD over every entity kind.

Invariants:
    - Every handler goes through EntityWriteService; no route touches models
    - Bodies are validated against the kind's schema before the service runs
    - DELETE always answers 204, whether or not the row still existed

Design Decisions:
    - One router keyed by {kind} instead of a router per table: the entity
      registry already carries everything that differs between kinds
    - Kinds without a request schema (notifications, forbidden words) pass the
      raw body through, and the service's own checks decide
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.api.deps import get_identity
from fellowship.config import get_settings
from fellowship.core.domain_types import EntityKind
from fellowship.core.entity_registry import get_spec
from fellowship.core.identity import Identity
from fellowship.infrastructure.database import get_db
from fellowship.schemas.entities import CREATE_SCHEMAS, UPDATE_SCHEMAS
from fellowship.services.entity_writes import EntityWriteService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/entities", tags=["entities"])


def parse_body(schema: type[BaseModel] | None, body: dict) -> dict:
    """Validate `body` against `schema`, keeping only the keys the caller sent."""
    if schema is None:
        return body
    try:
        return schema.model_validate(body).model_dump(exclude_unset=True)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.post("/{kind}", status_code=status.HTTP_201_CREATED)
async def create_entity(
    kind: EntityKind,
    body: dict = Body(...),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    values = parse_body(CREATE_SCHEMAS.get(kind), body)
    return await EntityWriteService(db).create(identity, kind, values)


@router.get("/{kind}")
async def list_entities(
    kind: EntityKind,
    parent_id: UUID | None = Query(None),
    owner: str | None = Query(None),
    conversation_id: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Newest-first rows the caller may see, optionally under one parent."""
    spec = get_spec(kind)
    filters: dict = {}
    if parent_id is not None and spec.parent is not None:
        filters[spec.parent.fk_field] = parent_id
    if owner is not None and spec.owner_field is not None:
        filters[spec.owner_field] = owner
    if conversation_id is not None:
        filters["conversation_id"] = conversation_id
    limit = limit or get_settings().list_page_size

    items = await EntityWriteService(db).list_visible(
        identity, kind, filters, limit=limit, offset=offset,
    )
    return {"items": items, "limit": limit, "offset": offset}


@router.get("/{kind}/{entity_id}")
async def read_entity(
    kind: EntityKind,
    entity_id: UUID,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await EntityWriteService(db).read(identity, kind, entity_id)


@router.patch("/{kind}/{entity_id}")
async def update_entity(
    kind: EntityKind,
    entity_id: UUID,
    body: dict = Body(...),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    changes = parse_body(UPDATE_SCHEMAS.get(kind), body)
    return await EntityWriteService(db).update(identity, kind, entity_id, changes)


@router.delete("/{kind}/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entity(
    kind: EntityKind,
    entity_id: UUID,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    await EntityWriteService(db).delete(identity, kind, entity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
