"""Message model type definitions for database operations."""

from datetime import datetime, timezone
from typing import Any, TypedDict
from uuid import UUID

from pydantic import TypeAdapter

_timestamp = TypeAdapter(datetime)


class Message(TypedDict):
    """Messages table row.

    A conversation is the set of messages exchanged between an unordered
    pair of identities.
    """

    id: int
    sender: UUID
    receiver: UUID
    content: str
    created_at: datetime


def is_in_conversation(message: dict[str, Any], user_id: UUID, counterpart_id: UUID) -> bool:
    """Check whether a message row belongs to the {user, counterpart} conversation."""
    sender = str(message.get("sender"))
    receiver = str(message.get("receiver"))
    user = str(user_id)
    counterpart = str(counterpart_id)
    return (sender == user and receiver == counterpart) or (
        sender == counterpart and receiver == user
    )


def message_sort_key(message: dict[str, Any]) -> tuple[datetime, int]:
    """Sort key ordering messages by creation time, then id."""
    created_at = message.get("created_at")
    if created_at:
        timestamp = _timestamp.validate_python(created_at)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
    else:
        timestamp = datetime.max.replace(tzinfo=timezone.utc)

    message_id = message.get("id")
    return timestamp, message_id if isinstance(message_id, int) else 0
