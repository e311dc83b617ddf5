"""Per-view conversation state: message log, draft and live updates."""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable
from uuid import UUID, uuid4

from src.models.message import message_sort_key

if TYPE_CHECKING:
    from src.services.message_service import MessageService
    from src.services.message_subscription import MessageSubscription

logger = logging.getLogger(__name__)


@dataclass
class PendingMessage:
    """A message shown optimistically while its send is in flight."""

    content: str
    local_id: str = field(default_factory=lambda: f"pending-{uuid4().hex}")


class ConversationView:
    """State of one open conversation.

    Holds the ordered, duplicate-free message log, the unsent draft and the
    realtime subscription. History is fetched after subscribing so nothing
    sent in between is missed; the overlap is removed by message id.

    Sending is two-phase: the message is added as pending and the draft is
    cleared, then either replaced by the stored row or dropped with the
    draft restored.
    """

    def __init__(
        self,
        service: MessageService,
        user_id: UUID,
        counterpart_id: UUID,
        on_message: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.service = service
        self.user_id = user_id
        self.counterpart_id = counterpart_id
        self.on_message = on_message

        self.messages: list[dict[str, Any]] = []
        self.pending: list[PendingMessage] = []
        self.draft = ""

        self._ids: set[Any] = set()
        self._subscription: MessageSubscription | None = None
        self._closed = False

    async def __aenter__(self) -> ConversationView:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._subscription is not None and not self._closed

    @property
    def is_live(self) -> bool:
        """Whether new messages are currently being pushed."""
        return self.is_open and self._subscription.active

    async def open(self) -> list[dict[str, Any]]:
        """Subscribe to new messages, then load the history.

        Returns:
            list[dict]: The message log after the initial load.
        """
        if self._closed:
            raise RuntimeError("Conversation view is closed")

        if self._subscription is None:
            self._subscription = await self.service.subscribe(
                self.user_id, self.counterpart_id, self._on_pushed
            )

        try:
            history = await self.service.list_messages(self.user_id, self.counterpart_id)
        except Exception:
            await self.close()
            raise

        for message in history:
            self._apply(message, notify=False)
        return self.messages

    def _on_pushed(self, message: dict[str, Any]) -> None:
        self._apply(message)

    def _apply(self, message: dict[str, Any], notify: bool = True) -> bool:
        """Insert a stored message in order unless its id is already shown."""
        message_id = message.get("id")
        if message_id is None or message_id in self._ids:
            return False

        self._ids.add(message_id)
        if self._subscription is not None:
            self._subscription.mark_seen(message_id)

        keys = [message_sort_key(m) for m in self.messages]
        self.messages.insert(bisect.bisect_right(keys, message_sort_key(message)), message)

        if notify and self.on_message is not None:
            self.on_message(message)
        return True

    async def send(self, content: str | None = None) -> dict[str, Any]:
        """Send the given text, or the current draft.

        Args:
            content: Text to send; defaults to the draft.

        Returns:
            dict: The stored message.

        Raises:
            ValidationError: If the text is blank; the draft is kept.
            APIError: If the send fails; the text is restored to the draft.
        """
        text = self.service.validate_content(self.draft if content is None else content)

        pending = PendingMessage(content=text)
        self.pending.append(pending)
        self.draft = ""

        try:
            stored = await self.service.send_message(self.user_id, self.counterpart_id, text)
        except Exception:
            self.pending.remove(pending)
            self.draft = f"{text}\n{self.draft}" if self.draft else text
            logger.info("Send to %s failed; draft restored", self.counterpart_id)
            raise

        self.pending.remove(pending)
        self._apply(stored)
        return stored

    async def close(self) -> None:
        """Cancel the subscription. Safe to call more than once."""
        self._closed = True
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.cancel()
