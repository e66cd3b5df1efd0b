"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods do IO, but the pure functions that
      consume their results (authorize, validate_username) are never async
"""

from typing import Protocol

from fellowship.core.domain_types import ProfileId, Role


class RoleStore(Protocol):
    """Single source of truth for profile roles, implemented by shell."""
    async def get_profile(self, profile_id: ProfileId) -> dict | None: ...
    async def get_role(self, profile_id: ProfileId) -> Role | None: ...
    async def set_role(self, profile_id: ProfileId, role: Role) -> dict: ...


class UsernameDirectory(Protocol):
    """Lookups the username policy needs at sign-up, implemented by shell."""
    async def forbidden_words(self) -> list[str]: ...
    async def usernames_with_prefix(self, prefix: str) -> set[str]: ...
