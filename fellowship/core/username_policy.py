"""Username Policy — forbidden-word filter and uniqueness repair at sign-up.

Invariants:
    - Forbidden-word match is case-insensitive SUBSTRING match, not whole-word
    - A forbidden candidate is rejected outright; it is never repaired
    - Collisions are repaired with "_" + 8 random chars, at most
      MAX_USERNAME_ATTEMPTS retries, then a random "user_<32 hex>" fallback
    - Only a collision can change the final name; the forbidden check is fatal
    - A 7-digit name is reserved for guests and is repaired like a collision,
      so no profile ever holds a guest-shaped username

Design Decisions:
    - `taken` is the set of existing usernames sharing the candidate's prefix,
      prefetched by the caller, so the policy stays pure
    - token_factory is injectable so retries are deterministic under test
"""

from dataclasses import dataclass
from typing import Callable, Collection, Iterable
from uuid import uuid4

from fellowship.core.domain_types import (
    MAX_USERNAME_ATTEMPTS,
    USERNAME_SUFFIX_LENGTH,
)
from fellowship.core.identity import is_guest_username


@dataclass(frozen=True)
class UsernameResult:
    """Ok(username) when ok is True, Reject(reason) otherwise."""
    ok: bool
    username: str | None = None
    reason: str | None = None
    attempts: int = 0
    fell_back: bool = False

    @classmethod
    def accept(
        cls, username: str, attempts: int = 0, fell_back: bool = False,
    ) -> "UsernameResult":
        return cls(True, username, None, attempts, fell_back)

    @classmethod
    def reject(cls, reason: str) -> "UsernameResult":
        return cls(False, None, reason)


def _random_token() -> str:
    return uuid4().hex


def find_forbidden_word(candidate: str, forbidden_words: Iterable[str]) -> str | None:
    """First forbidden word contained in candidate (case-insensitive), or None."""
    lowered = candidate.casefold()
    for word in forbidden_words:
        if word and word.casefold() in lowered:
            return word
    return None


def default_username(generated_id: str) -> str:
    return "user_" + str(generated_id).replace("-", "")[:8]


def fallback_username(token_factory: Callable[[], str] = _random_token) -> str:
    return "user_" + token_factory()[:32]


def validate_username(
    candidate: str | None,
    forbidden_words: Iterable[str],
    taken: Collection[str] = frozenset(),
    *,
    generated_id: str | None = None,
    token_factory: Callable[[], str] = _random_token,
    max_attempts: int = MAX_USERNAME_ATTEMPTS,
) -> UsernameResult:
    """Decide the final username for a new account.

    candidate:       requested name; blank means "generate one"
    forbidden_words: admin-managed word list
    taken:           usernames already in use (at least those with the
                     candidate's prefix)
    generated_id:    the new account's id, used for the default name
    """
    requested = (candidate or "").strip()
    if requested:
        hit = find_forbidden_word(requested, forbidden_words)
        if hit is not None:
            return UsernameResult.reject("Username contains forbidden words.")
        base = requested
    else:
        base = default_username(generated_id or token_factory())

    if base not in taken and not is_guest_username(base):
        return UsernameResult.accept(base)

    stem = requested or "user"
    for attempt in range(1, max_attempts + 1):
        name = f"{stem}_{token_factory()[:USERNAME_SUFFIX_LENGTH]}"
        if name not in taken:
            return UsernameResult.accept(name, attempts=attempt)

    return UsernameResult.accept(
        fallback_username(token_factory), attempts=max_attempts, fell_back=True,
    )
