"""Discovery feed API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from src.api.deps import CurrentSession
from src.schemas.like import MatchOutcome
from src.schemas.profile import ProfileResponse
from src.services.feed_service import FeedService
from src.services.like_service import LikeService

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get(
    "",
    response_model=list[ProfileResponse],
    summary="List candidates",
    description="Profiles the user has not liked yet, newest first.",
)
async def list_candidates(
    session: CurrentSession,
    limit: int | None = Query(default=None, ge=1, le=200, description="Maximum candidates"),
) -> list[ProfileResponse]:
    """List discovery candidates for the authenticated user.

    Requires a profile so that likes given from the feed can be matched.
    """
    await session.require_profile()
    candidates = await FeedService().list_candidates(session.user_id, limit=limit)
    return [ProfileResponse(**profile) for profile in candidates]


@router.post(
    "/{target_id}/like",
    response_model=MatchOutcome,
    summary="Like a profile",
    description="Record a like; reports whether it completed a mutual match.",
)
async def like_profile(target_id: UUID, session: CurrentSession) -> MatchOutcome:
    """Like a candidate.

    Raises:
        ValidationError: 422 on a self-like.
        NotFoundError: 404 if the caller has no profile yet.
        WriteError: 503 if the like could not be stored or either profile is gone.
    """
    await session.require_profile()
    return await LikeService().like(session.user_id, target_id)


@router.post(
    "/{target_id}/pass",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Pass on a profile",
    description="Skip a candidate. Passes are not stored.",
)
async def pass_profile(target_id: UUID, session: CurrentSession) -> None:
    """Pass on a candidate."""
    await FeedService().pass_profile(session.user_id, target_id)
