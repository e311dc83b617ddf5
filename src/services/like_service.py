"""Like ledger and mutual match detection."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import (
    TransientStoreError,
    ValidationError,
    WriteError,
)
from src.core.supabase import (
    STORE_ERRORS,
    get_supabase_client,
    is_foreign_key_violation,
    is_unique_violation,
)
from src.schemas.like import MatchOutcome
from src.schemas.match import MatchResponse
from src.services.match_service import MatchService

logger = logging.getLogger(__name__)


class LikeService:
    """Service recording likes and turning reciprocated likes into matches."""

    def __init__(self) -> None:
        """Initialize like service with Supabase client."""
        self.client = get_supabase_client()
        self.match_service = MatchService()

    async def has_liked(self, from_user: UUID, to_user: UUID) -> bool:
        """Check whether a like exists for the ordered pair."""
        response = (
            self.client.table("likes")
            .select("id")
            .eq("from_user", str(from_user))
            .eq("to_user", str(to_user))
            .limit(1)
            .execute()
        )
        return bool(response.data)

    async def get_liked_user_ids(self, user_id: UUID) -> set[str]:
        """Get the ids of every profile a user has liked.

        Args:
            user_id: The user who gave the likes.

        Returns:
            set[str]: Liked identities.
        """
        try:
            response = (
                self.client.table("likes")
                .select("to_user")
                .eq("from_user", str(user_id))
                .execute()
            )
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to load likes") from e

        return {str(row["to_user"]) for row in response.data or [] if row.get("to_user")}

    async def _record_like(self, viewer_id: UUID, target_id: UUID) -> None:
        """Insert the like unless the ordered pair already has one."""
        try:
            if await self.has_liked(viewer_id, target_id):
                logger.debug("Like %s -> %s already recorded", viewer_id, target_id)
                return

            self.client.table("likes").insert(
                {"from_user": str(viewer_id), "to_user": str(target_id)}
            ).execute()
        except STORE_ERRORS as e:
            if is_unique_violation(e):
                return
            if is_foreign_key_violation(e):
                raise WriteError(
                    "Profile no longer exists",
                    details=[{"msg": "profile no longer exists", "type": "missing_identity"}],
                ) from e
            logger.error("Failed to record like %s -> %s: %s", viewer_id, target_id, e)
            raise WriteError("Failed to like profile") from e

    async def like(self, viewer_id: UUID, target_id: UUID) -> MatchOutcome:
        """Like a profile and create the match if the like is reciprocated.

        A failure while checking reciprocity or creating the match keeps the
        like and reports ``match_check_failed`` instead of guessing.

        Args:
            viewer_id: The user giving the like.
            target_id: The profile being liked.

        Returns:
            MatchOutcome: Whether the like completed a match.

        Raises:
            ValidationError: If a user likes themselves.
            WriteError: If the like could not be stored, including when either
                identity no longer exists.
        """
        if viewer_id == target_id:
            raise ValidationError("You cannot like your own profile")

        await self._record_like(viewer_id, target_id)

        try:
            if not await self.has_liked(target_id, viewer_id):
                return MatchOutcome(target_id=target_id)

            match, created = await self.match_service.create_match(viewer_id, target_id)
        except STORE_ERRORS as e:
            logger.warning(
                "Like %s -> %s stored but match check failed: %s", viewer_id, target_id, e
            )
            return MatchOutcome(target_id=target_id, match_check_failed=True)

        if created:
            logger.info("Mutual like between %s and %s", viewer_id, target_id)

        return MatchOutcome(
            target_id=target_id,
            matched=True,
            match=MatchResponse(**match),
        )

    async def reconcile_matches(self, user_id: UUID) -> list[dict[str, Any]]:
        """Create any missing matches for a user's reciprocated likes.

        Args:
            user_id: The user to reconcile.

        Returns:
            list[dict]: Match rows created by this pass.
        """
        try:
            given = await self.get_liked_user_ids(user_id)
            response = (
                self.client.table("likes")
                .select("from_user")
                .eq("to_user", str(user_id))
                .execute()
            )
            received = {str(row["from_user"]) for row in response.data or [] if row.get("from_user")}

            created_matches = []
            for counterpart in sorted(given & received):
                match, created = await self.match_service.create_match(user_id, UUID(counterpart))
                if created:
                    created_matches.append(match)
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to reconcile matches") from e

        if created_matches:
            logger.info("Reconciled %d missing matches for %s", len(created_matches), user_id)
        return created_matches
