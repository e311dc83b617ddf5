"""Realtime subscription handle for a single conversation."""

import asyncio
import logging
from typing import Any, Callable
from uuid import UUID

from supabase import AsyncClient
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_exponential

from src.models.message import is_in_conversation

logger = logging.getLogger(__name__)

MessageCallback = Callable[[dict[str, Any]], None]

# Channel states after which delivery has stopped
_FAILED_STATES = frozenset({"CHANNEL_ERROR", "TIMED_OUT", "CLOSED"})

MAX_RESUBSCRIBE_WAIT_SECONDS = 30


def extract_inserted_record(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Pull the inserted row out of a postgres_changes payload."""
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("record"), dict):
        return data["record"]
    for key in ("record", "new"):
        if isinstance(payload.get(key), dict):
            return payload[key]
    return None


class MessageSubscription:
    """Live delivery of new messages in one conversation.

    Listens to every insert on the messages table, because the transport
    cannot filter by conversation, and forwards only the rows exchanged
    between ``user_id`` and ``counterpart_id``. Each message id is delivered
    at most once. A channel that errors, times out or closes on its own is
    resubscribed after ``resubscribe_delay`` seconds.
    """

    def __init__(
        self,
        client: AsyncClient,
        user_id: UUID,
        counterpart_id: UUID,
        on_message: MessageCallback,
        resubscribe_delay: float = 2.0,
    ) -> None:
        self.client = client
        self.user_id = user_id
        self.counterpart_id = counterpart_id
        self.on_message = on_message
        self.resubscribe_delay = resubscribe_delay
        self.topic = f"messages_{user_id}_{counterpart_id}"

        self._channel: Any = None
        self._connected = False
        self._seen_ids: set[Any] = set()
        self._cancelled = False
        self._resubscribe_task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        """Whether the subscription still delivers messages."""
        return not self._cancelled and self._connected

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def start(self) -> "MessageSubscription":
        """Open the realtime channel."""
        if self._cancelled:
            return self

        channel = self.client.channel(self.topic)
        channel.on_postgres_changes(
            "INSERT",
            schema="public",
            table="messages",
            callback=self._handle_change,
        )
        self._channel = channel
        self._connected = False
        await channel.subscribe(self._handle_status)
        self._connected = True
        logger.debug("Subscribed to %s", self.topic)
        return self

    async def connect(self) -> "MessageSubscription":
        """Open the realtime channel, retrying in the background if it fails.

        Unlike start(), a failure here does not raise: the subscription stays
        inactive until a resubscription attempt succeeds.
        """
        try:
            await self.start()
        except Exception as e:
            logger.warning("Realtime channel %s failed to open: %s", self.topic, e)
            self._connected = False
            self._schedule_resubscribe()
        return self

    def deliver(self, message: dict[str, Any]) -> bool:
        """Deliver a message to the callback unless it was already delivered.

        Returns:
            bool: True if the callback was invoked.
        """
        if self._cancelled or not is_in_conversation(message, self.user_id, self.counterpart_id):
            return False

        message_id = message.get("id")
        if message_id in self._seen_ids:
            return False
        self._seen_ids.add(message_id)

        try:
            self.on_message(message)
        except Exception:
            logger.exception("Message callback failed on %s", self.topic)
        return True

    def mark_seen(self, message_id: Any) -> None:
        """Record a message id delivered through another path."""
        self._seen_ids.add(message_id)

    def _handle_change(self, payload: dict[str, Any]) -> None:
        record = extract_inserted_record(payload)
        if record is not None:
            self.deliver(record)

    def _handle_status(self, status: Any, error: Exception | None = None) -> None:
        state = str(getattr(status, "value", status))
        if state not in _FAILED_STATES or self._cancelled:
            return

        logger.warning("Realtime channel %s is %s: %s", self.topic, state, error)
        self._connected = False
        self._schedule_resubscribe()

    def _schedule_resubscribe(self) -> None:
        if self._resubscribe_task is not None and not self._resubscribe_task.done():
            return
        self._resubscribe_task = asyncio.create_task(self._resubscribe())

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "Resubscribing %s failed (attempt %d): %s",
            self.topic,
            retry_state.attempt_number,
            retry_state.outcome.exception() if retry_state.outcome else None,
        )

    async def _resubscribe(self) -> None:
        await asyncio.sleep(self.resubscribe_delay)

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            wait=wait_exponential(multiplier=self.resubscribe_delay, max=MAX_RESUBSCRIBE_WAIT_SECONDS),
            before_sleep=self._log_retry,
        ):
            with attempt:
                if self._cancelled:
                    return
                await self._remove_channel()
                await self.start()

        logger.info("Resubscribed to %s", self.topic)

    async def _remove_channel(self) -> None:
        channel, self._channel = self._channel, None
        self._connected = False
        if channel is None:
            return
        try:
            await self.client.remove_channel(channel)
        except Exception as e:
            logger.warning("Removing channel %s failed: %s", self.topic, e)

    async def cancel(self) -> None:
        """Stop delivery and release the channel. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True

        task = self._resubscribe_task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._resubscribe_task = None

        await self._remove_channel()
        logger.debug("Unsubscribed from %s", self.topic)
