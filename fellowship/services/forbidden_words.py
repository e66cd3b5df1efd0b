"""Forbidden word administration. Words are stored trimmed and lower-cased."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fellowship.core.domain_types import EntityKind
from fellowship.core.identity import Identity
from fellowship.services.entity_writes import EntityWriteService


def normalize_word(word: str) -> str:
    return word.strip().lower()


class ForbiddenWordAdmin:

    def __init__(self, db: AsyncSession):
        self.writes = EntityWriteService(db)

    async def list_words(self, identity: Identity, limit: int = 500) -> list[dict]:
        rows = await self.writes.list_visible(
            identity, EntityKind.FORBIDDEN_WORD, limit=limit,
        )
        return sorted(rows, key=lambda row: row["word"])

    async def add(self, identity: Identity, word: str) -> dict:
        return await self.writes.create(
            identity, EntityKind.FORBIDDEN_WORD, {"word": normalize_word(word)},
        )

    async def remove(self, identity: Identity, word_id: UUID) -> bool:
        return await self.writes.delete(identity, EntityKind.FORBIDDEN_WORD, word_id)
