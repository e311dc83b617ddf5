"""Explicit per-session state: the signed-in identity and its profile."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable
from uuid import UUID

from supabase import Client

from src.api.middleware.error_handler import NotFoundError
from src.schemas.auth import UserContext
from src.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Identity and cached profile of the current session.

    Created when a session starts and passed to whatever needs the current
    user. The profile is loaded lazily and only re-read on an explicit
    refresh() or after an auth state change marks it stale.
    """

    user: UserContext
    profile: dict[str, Any] | None = None
    stale: bool = True
    signed_out: bool = False
    profile_service: ProfileService = field(default_factory=ProfileService, repr=False)
    refresh_task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def user_id(self) -> UUID:
        return self.user.user_id

    async def refresh(self) -> dict[str, Any] | None:
        """Reload the profile from the store."""
        self.profile = await self.profile_service.get_profile(self.user_id)
        self.stale = False
        return self.profile

    async def get_profile(self) -> dict[str, Any] | None:
        """Return the cached profile, loading it if needed."""
        if self.stale:
            await self.refresh()
        return self.profile

    async def require_profile(self) -> dict[str, Any]:
        """Return the profile or raise if onboarding is not finished.

        Raises:
            NotFoundError: If the user has not created a profile.
        """
        profile = await self.get_profile()
        if profile is None:
            raise NotFoundError("Create your profile first")
        return profile

    def clear(self) -> None:
        """Drop cached state, e.g. on sign-out."""
        self.profile = None
        self.stale = True

    def _on_refresh_done(self, task: asyncio.Task) -> None:
        if self.refresh_task is task:
            self.refresh_task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Profile refresh for %s failed: %s", self.user_id, error)

    def watch(self, auth_client: Client) -> Callable[[], None]:
        """Follow auth state changes of a client.

        Sign-out clears the cached profile; any other event with a session
        refreshes it.

        Args:
            auth_client: Supabase client whose auth events to follow.

        Returns:
            Callable: Unsubscribes the listener.
        """

        def on_change(event: str, session: Any) -> None:
            if event == "SIGNED_OUT" or session is None:
                logger.info("Session ended for %s", self.user_id)
                self.signed_out = True
                self.clear()
                return

            self.stale = True
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return
            self.refresh_task = loop.create_task(self.refresh())
            self.refresh_task.add_done_callback(self._on_refresh_done)

        subscription = auth_client.auth.on_auth_state_change(on_change)
        return subscription.unsubscribe
