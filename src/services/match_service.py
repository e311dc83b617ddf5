"""Match registry service."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import TransientStoreError
from src.core.supabase import STORE_ERRORS, get_supabase_client, is_unique_violation
from src.models.match import canonical_pair, counterpart_of
from src.schemas.match import MatchWithProfile
from src.schemas.profile import ProfileResponse
from src.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


class MatchService:
    """Service for confirmed matches.

    Matches are written with the pair in canonical order and the table has a
    unique constraint on (user1, user2), so a pair can only ever have one
    match row no matter which side completed it.
    """

    def __init__(self) -> None:
        """Initialize match service with Supabase client."""
        self.client = get_supabase_client()
        self.profile_service = ProfileService()

    @staticmethod
    def _pair_filter(a: UUID, b: UUID) -> str:
        """PostgREST filter matching a pair stored in either order."""
        return f"and(user1.eq.{a},user2.eq.{b}),and(user1.eq.{b},user2.eq.{a})"

    async def get_match(self, a: UUID, b: UUID) -> dict[str, Any] | None:
        """Get the match between two identities, if any.

        Rows written before canonical ordering are found too.
        """
        response = (
            self.client.table("matches")
            .select("*")
            .or_(self._pair_filter(a, b))
            .limit(1)
            .execute()
        )

        return response.data[0] if response.data else None

    async def are_matched(self, a: UUID, b: UUID) -> bool:
        """Check whether two identities have a match."""
        try:
            return await self.get_match(a, b) is not None
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to check match") from e

    async def create_match(self, a: UUID, b: UUID) -> tuple[dict[str, Any], bool]:
        """Create the match for a pair unless one already exists.

        Checks before inserting; if a concurrent insert wins the race the
        unique violation is resolved by returning the existing row.

        Args:
            a: One identity of the pair.
            b: The other identity.

        Returns:
            tuple: (match_data, created) where created is False for an existing match.
        """
        existing = await self.get_match(a, b)
        if existing:
            return existing, False

        user1, user2 = canonical_pair(a, b)

        try:
            response = (
                self.client.table("matches")
                .insert({"user1": str(user1), "user2": str(user2)})
                .execute()
            )
        except STORE_ERRORS as e:
            if not is_unique_violation(e):
                raise
            existing = await self.get_match(a, b)
            if existing is None:
                raise
            logger.info("Match for %s and %s created concurrently", user1, user2)
            return existing, False

        logger.info("Match created: %s <-> %s", user1, user2)
        return response.data[0], True

    async def list_matches(self, user_id: UUID) -> list[MatchWithProfile]:
        """List a user's matches with each counterpart's current profile.

        Matches whose counterpart no longer has a profile are left out.

        Args:
            user_id: The user whose matches to list.

        Returns:
            list[MatchWithProfile]: Matches, most recent first.
        """
        try:
            response = (
                self.client.table("matches")
                .select("*")
                .or_(f"user1.eq.{user_id},user2.eq.{user_id}")
                .order("created_at", desc=True)
                .execute()
            )
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to load matches") from e

        rows = response.data or []
        counterpart_ids = [counterpart_of(row, user_id) for row in rows]
        profiles = await self.profile_service.get_profiles(list(dict.fromkeys(counterpart_ids)))

        matches = []
        for row, counterpart_id in zip(rows, counterpart_ids):
            profile = profiles.get(str(counterpart_id))
            if not profile:
                logger.debug("Skipping match %s: counterpart profile missing", row["id"])
                continue

            matches.append(
                MatchWithProfile(
                    id=row["id"],
                    user1=row["user1"],
                    user2=row["user2"],
                    created_at=row.get("created_at"),
                    counterpart_id=counterpart_id,
                    profile=ProfileResponse(**profile),
                )
            )

        return matches
