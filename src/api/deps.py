"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, WebSocket, WebSocketException, status

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.schemas.auth import UserContext
from src.services.session_context import SessionContext


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def parse_bearer_token(authorization: str) -> str | None:
    """Extract the token from a "Bearer <token>" header value."""
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def authenticate_token(token: str) -> UserContext:
    """Verify an access token and build the user context.

    Raises:
        AuthError: If the token is invalid or expired.
    """
    payload = decode_jwt(token)
    return payload.to_user_context(access_token=token)


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """Extract and validate the current user from the Authorization header.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        UserContext: The authenticated user's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise _unauthorized("Authorization header required")

    token = parse_bearer_token(authorization)
    if token is None:
        raise _unauthorized("Invalid authorization header format. Expected: Bearer <token>")

    try:
        return authenticate_token(token)
    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise _unauthorized("Token has expired") from e
        raise _unauthorized(e.message) from e


async def get_session_context(
    user: Annotated[UserContext, Depends(get_current_user)],
) -> SessionContext:
    """Build the session context for the authenticated user.

    The profile is loaded lazily, so routes that never touch it pay nothing.
    """
    return SessionContext(user=user)


async def get_websocket_user(
    websocket: WebSocket,
    token: Annotated[str | None, Query(description="Access token")] = None,
) -> UserContext:
    """Authenticate a WebSocket connection.

    Browsers cannot set headers on WebSocket requests, so the access token
    may come from the ``token`` query parameter as well as the header.

    Raises:
        WebSocketException: Policy violation close if the token is missing or invalid.
    """
    if token is None:
        token = parse_bearer_token(websocket.headers.get("authorization", ""))
    if not token:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication required")

    try:
        return authenticate_token(token)
    except AuthError as e:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason=e.message) from e


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
CurrentSession = Annotated[SessionContext, Depends(get_session_context)]
WebSocketUser = Annotated[UserContext, Depends(get_websocket_user)]
