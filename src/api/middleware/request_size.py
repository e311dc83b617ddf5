"""Request body size limiting middleware."""

import logging
from typing import Callable

from fastapi import Request, Response, status

from src.api.middleware.error_handler import create_error_response
from src.core.config import get_settings

logger = logging.getLogger(__name__)


def declared_body_size(request: Request) -> int | None:
    """Return the Content-Length of a request, or None if absent or malformed."""
    content_length = request.headers.get("content-length")
    if not content_length:
        return None
    try:
        return int(content_length)
    except ValueError:
        return None


async def request_size_limit_middleware(
    request: Request,
    call_next: Callable[[Request], Response],
) -> Response:
    """Reject requests whose declared body exceeds max_request_body_size.

    Profile image uploads are the largest bodies the API accepts; the upload
    route still checks the actual image size against profile_image_max_bytes.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the handler's response or a 413 error.
    """
    max_size = get_settings().max_request_body_size
    length = declared_body_size(request)

    if length is not None and length > max_size:
        logger.warning(
            "Rejected %s %s: body of %d bytes exceeds %d",
            request.method,
            request.url.path,
            length,
            max_size,
        )
        return create_error_response(
            error_type="request_too_large",
            message=f"Request body exceeds maximum size of {max_size} bytes",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            request_id=request.headers.get("X-Request-ID"),
        )

    return await call_next(request)
