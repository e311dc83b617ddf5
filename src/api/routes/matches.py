"""Match API routes."""

from fastapi import APIRouter

from src.api.deps import CurrentUser
from src.schemas.match import MatchListResponse, MatchResponse, ReconcileResponse
from src.services.like_service import LikeService
from src.services.match_service import MatchService

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get(
    "",
    response_model=MatchListResponse,
    summary="List matches",
    description="Matches of the authenticated user joined with each counterpart's profile.",
)
async def list_matches(user: CurrentUser) -> MatchListResponse:
    """List the authenticated user's matches, most recent first."""
    matches = await MatchService().list_matches(user.user_id)
    return MatchListResponse(matches=matches, total=len(matches))


@router.post(
    "/reconcile",
    response_model=ReconcileResponse,
    summary="Reconcile matches",
    description="Create matches for reciprocated likes whose match is missing.",
)
async def reconcile_matches(user: CurrentUser) -> ReconcileResponse:
    """Run a reconciliation pass for the authenticated user.

    Used after a like reported ``match_check_failed``.
    """
    created = await LikeService().reconcile_matches(user.user_id)
    return ReconcileResponse(created=[MatchResponse(**row) for row in created])
