"""Like model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Like(TypedDict):
    """Likes table row: a one-directional interest signal."""

    id: int
    from_user: UUID
    to_user: UUID
    created_at: datetime
