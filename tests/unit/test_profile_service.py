"""Unit tests for ProfileService."""

from unittest.mock import MagicMock, patch
from uuid import UUID

import httpx
import pytest
from postgrest.exceptions import APIError as PostgrestAPIError

from src.api.middleware.error_handler import (
    ConflictError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from src.schemas.profile import ProfileCreate, ProfileUpdate
from src.services.profile_service import USERNAME_TAKEN, ProfileService

USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")


def _response(data: object) -> MagicMock:
    response = MagicMock()
    response.data = data
    return response


def _unique_violation(constraint: str) -> PostgrestAPIError:
    return PostgrestAPIError(
        {
            "code": "23505",
            "message": f'duplicate key value violates unique constraint "{constraint}"',
            "details": None,
            "hint": None,
        }
    )


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def profile_service(mock_supabase: MagicMock) -> ProfileService:
    """Create ProfileService with mocked client."""
    with patch("src.services.profile_service.get_supabase_client", return_value=mock_supabase):
        return ProfileService()


@pytest.fixture
def profile_create() -> ProfileCreate:
    return ProfileCreate(
        username="  asha_k ",
        first_name="Asha",
        last_name="Kumar",
        gender="female",
        bio="Chess and chai",
        interests=["Music", " music", "Books", ""],
        year_of_study=2,
        looking_for="dating",
    )


class TestCreateProfile:
    """Tests for create_profile method."""

    @pytest.mark.asyncio
    async def test_inserts_profile_keyed_by_user_id(
        self,
        profile_service: ProfileService,
        mock_supabase: MagicMock,
        profile_create: ProfileCreate,
    ) -> None:
        """Test that the profile row uses the auth user id and normalized fields."""
        created = {"id": str(USER_ID), "username": "asha_k"}
        mock_supabase.table.return_value.insert.return_value.execute.return_value = _response([created])

        result = await profile_service.create_profile(USER_ID, profile_create)

        assert result == created
        mock_supabase.table.assert_called_with("profiles")
        inserted = mock_supabase.table.return_value.insert.call_args[0][0]
        assert inserted["id"] == str(USER_ID)
        assert inserted["username"] == "asha_k"
        assert inserted["interests"] == ["Music", "Books"]
        assert inserted["gender"] == "female"

    @pytest.mark.asyncio
    async def test_taken_username_raises_conflict(
        self,
        profile_service: ProfileService,
        mock_supabase: MagicMock,
        profile_create: ProfileCreate,
    ) -> None:
        """Test that a username unique violation is reported as a conflict."""
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = _unique_violation(
            "profiles_username_key"
        )

        with pytest.raises(ConflictError) as exc_info:
            await profile_service.create_profile(USER_ID, profile_create)

        assert exc_info.value.message == USERNAME_TAKEN
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_existing_profile_raises_conflict(
        self,
        profile_service: ProfileService,
        mock_supabase: MagicMock,
        profile_create: ProfileCreate,
    ) -> None:
        """Test that a second profile for the same identity is rejected."""
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = _unique_violation(
            "profiles_pkey"
        )

        with pytest.raises(ConflictError) as exc_info:
            await profile_service.create_profile(USER_ID, profile_create)

        assert exc_info.value.message == "Profile already exists"

    @pytest.mark.asyncio
    async def test_network_failure_is_transient(
        self,
        profile_service: ProfileService,
        mock_supabase: MagicMock,
        profile_create: ProfileCreate,
    ) -> None:
        """Test that a network failure is reported as retryable."""
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = httpx.ConnectError(
            "connection refused"
        )

        with pytest.raises(TransientStoreError) as exc_info:
            await profile_service.create_profile(USER_ID, profile_create)

        assert exc_info.value.status_code == 503


class TestGetProfile:
    """Tests for get_profile and require_profile."""

    @pytest.mark.asyncio
    async def test_returns_profile(self, profile_service: ProfileService, mock_supabase: MagicMock) -> None:
        """Test that an existing profile is returned."""
        profile = {"id": str(USER_ID), "username": "asha_k"}
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = _response(
            profile
        )

        assert await profile_service.get_profile(USER_ID) == profile
        mock_supabase.table.return_value.select.return_value.eq.assert_called_with("id", str(USER_ID))

    @pytest.mark.asyncio
    async def test_returns_none_when_missing(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that a missing profile yields None (maybe_single returns no response)."""
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = None

        assert await profile_service.get_profile(USER_ID) is None

    @pytest.mark.asyncio
    async def test_require_profile_raises_not_found(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that require_profile raises when the identity has no profile."""
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = _response(
            None
        )

        with pytest.raises(NotFoundError):
            await profile_service.require_profile(USER_ID)

    @pytest.mark.asyncio
    async def test_get_profiles_keys_by_id(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that batch lookups are keyed by id string."""
        other = UUID("660e8400-e29b-41d4-a716-446655440000")
        rows = [{"id": str(other), "username": "ravi"}]
        mock_supabase.table.return_value.select.return_value.in_.return_value.execute.return_value = _response(rows)

        result = await profile_service.get_profiles([other, USER_ID])

        assert result == {str(other): rows[0]}
        mock_supabase.table.return_value.select.return_value.in_.assert_called_with(
            "id", [str(other), str(USER_ID)]
        )

    @pytest.mark.asyncio
    async def test_get_profiles_skips_query_for_no_ids(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that an empty lookup does not hit the store."""
        assert await profile_service.get_profiles([]) == {}
        mock_supabase.table.assert_not_called()


class TestUpdateProfile:
    """Tests for update_profile method."""

    @pytest.mark.asyncio
    async def test_updates_only_set_fields(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that a partial update sends only the given fields plus updated_at."""
        updated = {"id": str(USER_ID), "bio": "New bio"}
        mock_supabase.table.return_value.update.return_value.eq.return_value.execute.return_value = _response(
            [updated]
        )

        result = await profile_service.update_profile(USER_ID, ProfileUpdate(bio="New bio"))

        assert result == updated
        payload = mock_supabase.table.return_value.update.call_args[0][0]
        assert payload["bio"] == "New bio"
        assert "updated_at" in payload
        assert "username" not in payload

    @pytest.mark.asyncio
    async def test_username_conflict(self, profile_service: ProfileService, mock_supabase: MagicMock) -> None:
        """Test that renaming to a taken username raises a conflict."""
        mock_supabase.table.return_value.update.return_value.eq.return_value.execute.side_effect = _unique_violation(
            "profiles_username_key"
        )

        with pytest.raises(ConflictError):
            await profile_service.update_profile(USER_ID, ProfileUpdate(username="taken"))

    @pytest.mark.asyncio
    async def test_missing_profile_raises_not_found(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that updating a missing profile raises NotFoundError."""
        mock_supabase.table.return_value.update.return_value.eq.return_value.execute.return_value = _response([])

        with pytest.raises(NotFoundError):
            await profile_service.update_profile(USER_ID, ProfileUpdate(bio="x"))

    @pytest.mark.asyncio
    async def test_empty_update_returns_current_profile(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that an empty update reads instead of writing."""
        profile = {"id": str(USER_ID), "username": "asha_k"}
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = _response(
            profile
        )

        assert await profile_service.update_profile(USER_ID, ProfileUpdate()) == profile
        mock_supabase.table.return_value.update.assert_not_called()


class TestCheckUsernameAvailable:
    """Tests for check_username_available method."""

    @pytest.mark.asyncio
    async def test_short_username_is_unavailable(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that candidates under three characters are never available."""
        assert await profile_service.check_username_available("ab") is False
        mock_supabase.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_free_username(self, profile_service: ProfileService, mock_supabase: MagicMock) -> None:
        """Test that an unused username is available."""
        mock_supabase.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value = _response(
            []
        )

        assert await profile_service.check_username_available("asha_k") is True

    @pytest.mark.asyncio
    async def test_taken_username(self, profile_service: ProfileService, mock_supabase: MagicMock) -> None:
        """Test that a used username is unavailable."""
        mock_supabase.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value = _response(
            [{"id": "660e8400-e29b-41d4-a716-446655440000"}]
        )

        assert await profile_service.check_username_available("asha_k") is False

    @pytest.mark.asyncio
    async def test_own_username_is_available(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that the caller's current username counts as available to them."""
        mock_supabase.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value = _response(
            [{"id": str(USER_ID)}]
        )

        assert await profile_service.check_username_available("asha_k", exclude_user_id=USER_ID) is True


class TestUploadProfileImage:
    """Tests for upload_profile_image method."""

    @pytest.mark.asyncio
    async def test_uploads_under_user_folder(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that the image lands at {user_id}/{epoch_ms}.{ext} and its URL is returned."""
        bucket = mock_supabase.storage.from_.return_value
        bucket.get_public_url.return_value = "https://cdn.example/profiles/a.png"

        url = await profile_service.upload_profile_image(USER_ID, "Me.PNG", b"\x89PNG", "image/png")

        assert url == "https://cdn.example/profiles/a.png"
        mock_supabase.storage.from_.assert_called_with("profiles")
        path = bucket.upload.call_args.kwargs["path"]
        folder, name = path.split("/")
        assert folder == str(USER_ID)
        assert name.endswith(".png")
        assert name.split(".")[0].isdigit()

    @pytest.mark.asyncio
    async def test_storage_failure_degrades_to_none(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that a storage failure means no image rather than an error."""
        mock_supabase.storage.from_.return_value.upload.side_effect = RuntimeError("bucket unavailable")

        assert await profile_service.upload_profile_image(USER_ID, "me.jpg", b"data", "image/jpeg") is None

    @pytest.mark.asyncio
    async def test_rejects_non_image(self, profile_service: ProfileService) -> None:
        """Test that non-image uploads are rejected."""
        with pytest.raises(ValidationError):
            await profile_service.upload_profile_image(USER_ID, "notes.pdf", b"%PDF", "application/pdf")

    @pytest.mark.asyncio
    async def test_rejects_oversized_image(self, profile_service: ProfileService) -> None:
        """Test that images over the configured limit are rejected."""
        profile_service.settings = MagicMock(profile_image_max_bytes=3)

        with pytest.raises(ValidationError):
            await profile_service.upload_profile_image(USER_ID, "me.jpg", b"toolarge", "image/jpeg")
