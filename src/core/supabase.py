"""Supabase client access and storage error classification."""

import logging
from functools import lru_cache
from typing import Any

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import AsyncClient, Client, acreate_client, create_client
from supabase.lib.client_options import SyncClientOptions
from supabase_auth import SyncMemoryStorage

from src.core.config import get_settings

logger = logging.getLogger(__name__)

# Postgres error codes surfaced by PostgREST
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

# Exceptions raised by the data API for storage or network failures
STORE_ERRORS: tuple[type[Exception], ...] = (PostgrestAPIError, httpx.HTTPError)


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key, which bypasses RLS at the PostgREST level. Only use
    it for server-side operations where the caller's identity has already been
    verified from their access token.

    Do NOT use this client for auth operations that call set_session() - use
    create_auth_client() instead to avoid polluting the singleton's
    Authorization header.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def create_auth_client() -> Client:
    """Create a fresh Supabase client for auth operations.

    Use this for operations that call auth.set_session(), auth.sign_in_*(),
    or any method that modifies the client's Authorization header.

    Returns:
        Client: Fresh Supabase client instance with isolated session storage.
    """
    settings = get_settings()
    options = SyncClientOptions(
        storage=SyncMemoryStorage(),
        auto_refresh_token=False,
        persist_session=False,
    )
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
        options=options,
    )


_realtime_client: AsyncClient | None = None


async def get_realtime_client() -> AsyncClient:
    """Get or create the async Supabase client used for realtime channels.

    Realtime subscriptions are only available on the async client. A single
    client (one websocket) is shared by every open conversation; each
    conversation holds its own channel on it.

    Returns:
        AsyncClient: Async Supabase client instance.
    """
    global _realtime_client
    if _realtime_client is None:
        settings = get_settings()
        _realtime_client = await acreate_client(
            settings.supabase_url,
            settings.supabase_secret_key,
        )
        logger.info("Realtime client created")
    return _realtime_client


async def shutdown_realtime_client() -> None:
    """Remove all realtime channels. Call at app shutdown."""
    global _realtime_client
    if _realtime_client is not None:
        await _realtime_client.remove_all_channels()
        _realtime_client = None
        logger.info("Realtime client shutdown")


def store_error_code(error: Exception) -> str | None:
    """Return the Postgres/PostgREST error code carried by a store error."""
    if isinstance(error, PostgrestAPIError):
        return error.code
    return None


def store_error_message(error: Exception) -> str:
    """Return the human-readable message of a store error."""
    if isinstance(error, PostgrestAPIError):
        return " ".join(part for part in (error.message, error.details) if isinstance(part, str) and part)
    return str(error)


def is_unique_violation(error: Exception) -> bool:
    """Check whether a store error is a unique constraint violation."""
    return store_error_code(error) == UNIQUE_VIOLATION


def is_foreign_key_violation(error: Exception) -> bool:
    """Check whether a store error is a foreign key violation."""
    return store_error_code(error) == FOREIGN_KEY_VIOLATION


async def check_database_connection() -> dict[str, Any]:
    """Check if database connection is healthy.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        client = get_supabase_client()
        client.table("profiles").select("id").limit(1).execute()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
