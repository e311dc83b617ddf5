"""Profile API routes."""

from uuid import UUID

from fastapi import APIRouter, File, Query, UploadFile, status

from src.api.deps import CurrentSession, CurrentUser
from src.schemas.profile import (
    ProfileCreate,
    ProfileImageResponse,
    ProfileResponse,
    ProfileUpdate,
    UsernameAvailabilityResponse,
)
from src.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post(
    "",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create profile",
    description="Create the authenticated user's profile. Completes onboarding.",
)
async def create_profile(data: ProfileCreate, user: CurrentUser) -> ProfileResponse:
    """Create the profile for the authenticated user.

    Args:
        data: Profile fields.
        user: The authenticated user context.

    Returns:
        ProfileResponse: The created profile.

    Raises:
        ConflictError: 409 if the username is taken or the profile exists.
    """
    profile = await ProfileService().create_profile(user.user_id, data)
    return ProfileResponse(**profile)


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user's profile",
    description="Returns the authenticated user's profile information.",
)
async def get_my_profile(session: CurrentSession) -> ProfileResponse:
    """Get the authenticated user's profile.

    Raises:
        NotFoundError: 404 if onboarding is not finished.
    """
    profile = await session.require_profile()
    return ProfileResponse(**profile)


@router.patch(
    "/me",
    response_model=ProfileResponse,
    summary="Update current user's profile",
    description="Updates the authenticated user's profile with provided fields.",
)
async def update_my_profile(data: ProfileUpdate, user: CurrentUser) -> ProfileResponse:
    """Apply a partial update to the authenticated user's profile.

    Args:
        data: Fields to update.
        user: The authenticated user context.

    Returns:
        ProfileResponse: The updated profile data.
    """
    profile = await ProfileService().update_profile(user.user_id, data)
    return ProfileResponse(**profile)


@router.post(
    "/me/image",
    response_model=ProfileImageResponse,
    summary="Upload profile image",
    description="Upload a profile image. If a profile exists it is updated to use the new image.",
)
async def upload_my_image(
    user: CurrentUser,
    file: UploadFile = File(..., description="Image file"),
) -> ProfileImageResponse:
    """Upload a profile image for the authenticated user.

    An upload that fails in storage is reported with ``uploaded=false``
    rather than an error; the profile keeps its previous image.
    """
    service = ProfileService()
    content = await file.read()

    url = await service.upload_profile_image(
        user.user_id,
        filename=file.filename or "image",
        content=content,
        content_type=file.content_type,
    )

    if url and await service.get_profile(user.user_id):
        await service.update_profile(user.user_id, ProfileUpdate(profile_image=url))

    return ProfileImageResponse(profile_image=url, uploaded=url is not None)


@router.get(
    "/username-available",
    response_model=UsernameAvailabilityResponse,
    summary="Check username availability",
    description="Advisory check; the username can still be taken before the profile is saved.",
)
async def check_username(
    user: CurrentUser,
    username: str = Query(..., description="Candidate username"),
) -> UsernameAvailabilityResponse:
    """Check whether a username is free, ignoring the caller's own."""
    available = await ProfileService().check_username_available(
        username, exclude_user_id=user.user_id
    )
    return UsernameAvailabilityResponse(username=username.strip(), available=available)


@router.get(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Get a profile",
    description="Returns any user's public profile.",
)
async def get_profile(user_id: UUID, user: CurrentUser) -> ProfileResponse:
    """Get a profile by user id.

    Raises:
        NotFoundError: 404 if the user has no profile.
    """
    profile = await ProfileService().require_profile(user_id)
    return ProfileResponse(**profile)
