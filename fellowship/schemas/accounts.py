"""Account and administration request bodies."""

from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from fellowship.core.domain_types import Role


class AccountCreate(BaseModel):
    """Sign-up: id comes from the auth provider, username is optional."""
    id: UUID
    username: str | None = Field(None, max_length=100)


class RoleChange(BaseModel):
    role: Role


class ForbiddenWordCreate(BaseModel):
    word: str = Field(min_length=1, max_length=100)

    @field_validator("word")
    @classmethod
    def normalize_word(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("word cannot be empty or whitespace")
        return v
