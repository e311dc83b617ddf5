"""Match model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Match(TypedDict):
    """Matches table row.

    Stored in canonical order (user1 < user2) so the unordered pair maps to
    exactly one row.
    """

    id: int
    user1: UUID
    user2: UUID
    created_at: datetime


def canonical_pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    """Order two identities so that an unordered pair has one representation."""
    return (a, b) if str(a) <= str(b) else (b, a)


def counterpart_of(match: dict, user_id: UUID) -> UUID:
    """Return the identity on the other side of a match row."""
    user1 = UUID(str(match["user1"]))
    user2 = UUID(str(match["user2"]))
    return user2 if user1 == user_id else user1
