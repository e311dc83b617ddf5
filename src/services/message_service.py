"""Direct message business logic service."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import (
    AuthorizationError,
    TransientStoreError,
    ValidationError,
)
from src.core.config import get_settings
from src.core.supabase import STORE_ERRORS, get_realtime_client, get_supabase_client
from src.models.message import message_sort_key
from src.services.match_service import MatchService
from src.services.message_subscription import MessageCallback, MessageSubscription

logger = logging.getLogger(__name__)


class MessageService:
    """Service for the messages exchanged between two identities."""

    def __init__(self) -> None:
        """Initialize message service with Supabase client."""
        self.client = get_supabase_client()
        self.match_service = MatchService()
        self.settings = get_settings()

    async def list_messages(self, user_id: UUID, counterpart_id: UUID) -> list[dict[str, Any]]:
        """Get every message of a conversation, oldest first.

        Args:
            user_id: One participant.
            counterpart_id: The other participant.

        Returns:
            list[dict]: Messages ordered by created_at, then id.
        """
        try:
            response = (
                self.client.table("messages")
                .select("*")
                .or_(
                    f"and(sender.eq.{user_id},receiver.eq.{counterpart_id}),"
                    f"and(sender.eq.{counterpart_id},receiver.eq.{user_id})"
                )
                .order("created_at", desc=False)
                .order("id", desc=False)
                .execute()
            )
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to load messages") from e

        return sorted(response.data or [], key=message_sort_key)

    def validate_content(self, content: str) -> str:
        """Return trimmed message content or raise if it cannot be sent."""
        text = (content or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")
        if len(text) > self.settings.message_max_length:
            raise ValidationError(
                f"Message cannot be longer than {self.settings.message_max_length} characters"
            )
        return text

    async def send_message(
        self,
        sender_id: UUID,
        receiver_id: UUID,
        content: str,
    ) -> dict[str, Any]:
        """Store a message and return the stored row.

        Not idempotent: a retry after an ambiguous failure may store the
        message twice, and readers dedupe by id.

        Args:
            sender_id: The sending user.
            receiver_id: The receiving user.
            content: Message text.

        Returns:
            dict: The stored message including its id and created_at.

        Raises:
            ValidationError: If the content is blank or too long.
            AuthorizationError: If the users are not matched.
            TransientStoreError: If the message could not be stored.
        """
        text = self.validate_content(content)

        if sender_id == receiver_id:
            raise ValidationError("You cannot message yourself")

        if self.settings.require_match_for_messaging and not await self.match_service.are_matched(
            sender_id, receiver_id
        ):
            raise AuthorizationError("You can only message your matches")

        try:
            response = (
                self.client.table("messages")
                .insert(
                    {
                        "sender": str(sender_id),
                        "receiver": str(receiver_id),
                        "content": text,
                    }
                )
                .execute()
            )
        except STORE_ERRORS as e:
            logger.warning("Failed to send message %s -> %s: %s", sender_id, receiver_id, e)
            raise TransientStoreError("Failed to send message") from e

        return response.data[0]

    async def subscribe(
        self,
        user_id: UUID,
        counterpart_id: UUID,
        on_message: MessageCallback,
    ) -> MessageSubscription:
        """Start live delivery of new messages in a conversation.

        Args:
            user_id: The subscribing participant.
            counterpart_id: The other participant.
            on_message: Called once per new message in the conversation.

        Returns:
            MessageSubscription: Handle whose cancel() stops delivery.
        """
        client = await get_realtime_client()
        subscription = MessageSubscription(
            client,
            user_id,
            counterpart_id,
            on_message,
            resubscribe_delay=self.settings.realtime_resubscribe_delay_seconds,
        )
        return await subscription.connect()
