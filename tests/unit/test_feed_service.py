"""Unit tests for FeedService."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import httpx
import pytest

from src.api.middleware.error_handler import TransientStoreError
from src.services.feed_service import FeedService

VIEWER = UUID("550e8400-e29b-41d4-a716-446655440000")
LIKED = "660e8400-e29b-41d4-a716-446655440000"
FRESH = "770e8400-e29b-41d4-a716-446655440000"


def _response(data: object) -> MagicMock:
    response = MagicMock()
    response.data = data
    return response


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def feed_service(mock_supabase: MagicMock) -> FeedService:
    """Create FeedService with mocked client and like ledger."""
    with (
        patch("src.services.feed_service.get_supabase_client", return_value=mock_supabase),
        patch("src.services.like_service.get_supabase_client", return_value=mock_supabase),
        patch("src.services.match_service.get_supabase_client", return_value=mock_supabase),
        patch("src.services.profile_service.get_supabase_client", return_value=mock_supabase),
    ):
        service = FeedService()
    service.like_service.get_liked_user_ids = AsyncMock(return_value=set())
    return service


class TestListCandidates:
    """Tests for list_candidates method."""

    @pytest.mark.asyncio
    async def test_without_likes_lists_everyone_else(
        self, feed_service: FeedService, mock_supabase: MagicMock
    ) -> None:
        """Test that an empty like set applies no exclusion filter."""
        query = mock_supabase.table.return_value.select.return_value.neq.return_value
        query.order.return_value.order.return_value.limit.return_value.execute.return_value = _response(
            [{"id": FRESH}, {"id": LIKED}]
        )

        candidates = await feed_service.list_candidates(VIEWER)

        assert [c["id"] for c in candidates] == [FRESH, LIKED]
        mock_supabase.table.return_value.select.return_value.neq.assert_called_once_with("id", str(VIEWER))
        query.not_.in_.assert_not_called()
        query.order.assert_called_once_with("created_at", desc=True)

    @pytest.mark.asyncio
    async def test_excludes_liked_profiles(self, feed_service: FeedService, mock_supabase: MagicMock) -> None:
        """Test that liked profiles are filtered out in the query."""
        feed_service.like_service.get_liked_user_ids = AsyncMock(return_value={LIKED})
        query = mock_supabase.table.return_value.select.return_value.neq.return_value
        filtered = query.not_.in_.return_value
        filtered.order.return_value.order.return_value.limit.return_value.execute.return_value = _response(
            [{"id": FRESH}]
        )

        candidates = await feed_service.list_candidates(VIEWER)

        assert [c["id"] for c in candidates] == [FRESH]
        query.not_.in_.assert_called_once_with("id", [LIKED])

    @pytest.mark.asyncio
    async def test_never_returns_viewer_or_liked(
        self, feed_service: FeedService, mock_supabase: MagicMock
    ) -> None:
        """Test that rows the store should have filtered are still dropped."""
        feed_service.like_service.get_liked_user_ids = AsyncMock(return_value={LIKED})
        query = mock_supabase.table.return_value.select.return_value.neq.return_value
        query.not_.in_.return_value.order.return_value.order.return_value.limit.return_value.execute.return_value = _response(
            [{"id": str(VIEWER)}, {"id": LIKED}, {"id": FRESH}]
        )

        candidates = await feed_service.list_candidates(VIEWER)

        assert [c["id"] for c in candidates] == [FRESH]

    @pytest.mark.asyncio
    async def test_uses_limit(self, feed_service: FeedService, mock_supabase: MagicMock) -> None:
        query = mock_supabase.table.return_value.select.return_value.neq.return_value
        ordered = query.order.return_value.order.return_value
        ordered.limit.return_value.execute.return_value = _response([])

        await feed_service.list_candidates(VIEWER, limit=5)

        ordered.limit.assert_called_once_with(5)

    @pytest.mark.asyncio
    async def test_store_failure_is_transient(
        self, feed_service: FeedService, mock_supabase: MagicMock
    ) -> None:
        query = mock_supabase.table.return_value.select.return_value.neq.return_value
        query.order.return_value.order.return_value.limit.return_value.execute.side_effect = httpx.ConnectError(
            "down"
        )

        with pytest.raises(TransientStoreError):
            await feed_service.list_candidates(VIEWER)


class TestPassProfile:
    """Tests for pass_profile method."""

    @pytest.mark.asyncio
    async def test_pass_is_not_persisted(self, feed_service: FeedService, mock_supabase: MagicMock) -> None:
        await feed_service.pass_profile(VIEWER, UUID(FRESH))
        mock_supabase.table.assert_not_called()
