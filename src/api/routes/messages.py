"""Direct message API routes."""

import asyncio
import json
import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from src.api.deps import CurrentUser, WebSocketUser
from src.api.middleware.error_handler import APIError
from src.schemas.message import MessageCreate, MessageListResponse, MessageResponse
from src.services.conversation_view import ConversationView
from src.services.message_service import MessageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


def _message_payload(message: dict[str, Any]) -> dict[str, Any]:
    return MessageResponse(**message).model_dump(mode="json")


def _error_payload(error: APIError) -> dict[str, str]:
    return {"type": error.error_type, "message": error.message}


@router.get(
    "/{counterpart_id}",
    response_model=MessageListResponse,
    summary="List conversation",
    description="All messages exchanged with a user, oldest first.",
)
async def list_messages(counterpart_id: UUID, user: CurrentUser) -> MessageListResponse:
    """Get the conversation between the authenticated user and another user."""
    messages = await MessageService().list_messages(user.user_id, counterpart_id)
    return MessageListResponse(
        messages=[MessageResponse(**m) for m in messages],
        total=len(messages),
    )


@router.post(
    "/{counterpart_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send message",
    description="Send a message to a matched user.",
)
async def send_message(
    counterpart_id: UUID,
    data: MessageCreate,
    user: CurrentUser,
) -> MessageResponse:
    """Send a message.

    Raises:
        ValidationError: 422 if the content is blank or too long.
        AuthorizationError: 403 if the users are not matched.
        TransientStoreError: 503 if the message was not stored; safe to resend.
    """
    message = await MessageService().send_message(user.user_id, counterpart_id, data.content)
    return MessageResponse(**message)


def _parse_client_event(text: str) -> dict[str, Any] | None:
    """Decode a client frame; None if it is not a JSON object."""
    try:
        event = json.loads(text)
    except ValueError:
        return None
    return event if isinstance(event, dict) else None


def _invalid_frame_event() -> dict[str, Any]:
    return {
        "type": "error",
        "error": {"type": "validation_error", "message": "Events must be JSON objects"},
    }


async def _close_with_error(websocket: WebSocket, view: ConversationView, error: dict[str, str]) -> None:
    await view.close()
    await websocket.send_json({"type": "error", "error": error})
    await websocket.close(code=status.WS_1011_INTERNAL_ERROR)


async def _forward_events(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    while True:
        event = await outbox.get()
        await websocket.send_json(event)


async def _handle_client_event(
    view: ConversationView,
    event: dict[str, Any],
    outbox: asyncio.Queue,
) -> None:
    """Apply one client event to the conversation view.

    Events:
        {"type": "draft", "content": str}: replace the draft.
        {"type": "send", "content": str | None}: send the text, or the draft.
    """
    event_type = event.get("type")

    if event_type == "draft":
        view.draft = str(event.get("content") or "")
        return

    if event_type == "send":
        content = event.get("content")
        try:
            stored = await view.send(None if content is None else str(content))
        except APIError as e:
            outbox.put_nowait({"type": "send_failed", "error": _error_payload(e), "draft": view.draft})
            return
        outbox.put_nowait({"type": "sent", "id": stored["id"]})
        return

    outbox.put_nowait(
        {"type": "error", "error": {"type": "validation_error", "message": f"Unknown event: {event_type}"}}
    )


@router.websocket("/{counterpart_id}/stream")
async def stream_conversation(
    websocket: WebSocket,
    counterpart_id: UUID,
    user: WebSocketUser,
) -> None:
    """Live conversation with one user.

    On connect the server sends ``{"type": "history", "messages": [...]}``,
    then ``{"type": "message", "message": {...}}`` once per new message in
    either direction. Sends go through the connection's ConversationView, so
    a failed send comes back as ``send_failed`` carrying the restored draft.
    A successful send is echoed as ``message`` followed by ``sent``. If the
    realtime channel could not be joined, ``{"type": "status", "live": false}``
    follows the history while the channel is retried in the background.
    Frames that are not JSON objects are answered with an ``error`` event.
    """
    await websocket.accept()

    outbox: asyncio.Queue = asyncio.Queue()
    view = ConversationView(
        MessageService(),
        user.user_id,
        counterpart_id,
        on_message=lambda message: outbox.put_nowait(
            {"type": "message", "message": _message_payload(message)}
        ),
    )

    try:
        history = await view.open()
    except APIError as e:
        logger.warning("Could not open conversation %s <-> %s: %s", user.user_id, counterpart_id, e.message)
        await _close_with_error(websocket, view, _error_payload(e))
        return
    except Exception as e:
        logger.error("Could not open conversation %s <-> %s: %s", user.user_id, counterpart_id, e)
        await _close_with_error(
            websocket,
            view,
            {"type": "internal_error", "message": "Could not open the conversation"},
        )
        return

    await websocket.send_json(
        {"type": "history", "messages": [_message_payload(m) for m in history]}
    )
    if not view.is_live:
        await websocket.send_json({"type": "status", "live": False})
    forwarder = asyncio.create_task(_forward_events(websocket, outbox))

    try:
        while True:
            event = _parse_client_event(await websocket.receive_text())
            if event is None:
                outbox.put_nowait(_invalid_frame_event())
                continue
            await _handle_client_event(view, event, outbox)
    except WebSocketDisconnect:
        logger.debug("Conversation stream closed by %s", user.user_id)
    finally:
        forwarder.cancel()
        await asyncio.gather(forwarder, return_exceptions=True)
        await view.close()
