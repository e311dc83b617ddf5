"""Discovery feed service."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import TransientStoreError
from src.core.config import get_settings
from src.core.supabase import STORE_ERRORS, get_supabase_client
from src.services.like_service import LikeService

logger = logging.getLogger(__name__)


class FeedService:
    """Service computing the candidate profiles shown for swiping.

    Candidates are every profile except the viewer's own and the ones the
    viewer already liked, newest first. Passing is not stored, so a passed
    profile comes back on the next listing.
    """

    def __init__(self) -> None:
        """Initialize feed service with Supabase client."""
        self.client = get_supabase_client()
        self.like_service = LikeService()
        self.settings = get_settings()

    async def list_candidates(
        self,
        viewer_id: UUID,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """List profiles the viewer has not liked yet.

        Args:
            viewer_id: The user browsing the feed.
            limit: Maximum number of candidates to return.

        Returns:
            list[dict]: Candidate profiles ordered by created_at descending, then id.
        """
        liked_ids = await self.like_service.get_liked_user_ids(viewer_id)
        page_size = limit or self.settings.feed_page_size

        query = (
            self.client.table("profiles")
            .select("*")
            .neq("id", str(viewer_id))
        )

        # An empty exclusion list would render as an invalid "in ()" filter
        if liked_ids:
            query = query.not_.in_("id", sorted(liked_ids))

        try:
            response = (
                query.order("created_at", desc=True)
                .order("id")
                .limit(page_size)
                .execute()
            )
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to load discovery feed") from e

        excluded = liked_ids | {str(viewer_id)}
        return [row for row in response.data or [] if str(row["id"]) not in excluded]

    async def pass_profile(self, viewer_id: UUID, target_id: UUID) -> None:
        """Skip a candidate.

        Nothing is persisted; the client simply advances past the profile.
        """
        logger.debug("User %s passed on %s", viewer_id, target_id)
