"""Profile business logic service."""

import logging
import time
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import (
    ConflictError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from src.core.config import get_settings
from src.core.supabase import (
    STORE_ERRORS,
    get_supabase_client,
    is_unique_violation,
    store_error_message,
)
from src.schemas.profile import USERNAME_MIN_LENGTH, ProfileCreate, ProfileUpdate

logger = logging.getLogger(__name__)

USERNAME_TAKEN = "Username is already taken"


class ProfileService:
    """Service for managing user profiles.

    A profile row shares its id with the auth user, so there is at most one
    profile per identity. Username uniqueness is enforced by the store; the
    availability check is advisory only.
    """

    def __init__(self) -> None:
        """Initialize profile service with Supabase client."""
        self.client = get_supabase_client()
        self.settings = get_settings()

    async def create_profile(self, user_id: UUID, data: ProfileCreate) -> dict[str, Any]:
        """Create the profile for an identity.

        Args:
            user_id: The auth user ID; becomes the profile id.
            data: Validated profile fields.

        Returns:
            dict: The created profile row.

        Raises:
            ConflictError: If the username is taken or the profile already exists.
            TransientStoreError: If the store is unavailable.
        """
        profile_data = {
            "id": str(user_id),
            **data.model_dump(mode="json"),
        }

        try:
            response = self.client.table("profiles").insert(profile_data).execute()
        except STORE_ERRORS as e:
            if is_unique_violation(e):
                if "username" in store_error_message(e).lower():
                    raise ConflictError(USERNAME_TAKEN) from e
                raise ConflictError("Profile already exists") from e
            logger.error("Failed to create profile for %s: %s", user_id, e)
            raise TransientStoreError("Failed to create profile") from e

        logger.info("Profile created: %s (%s)", user_id, data.username)
        return response.data[0]

    async def get_profile(self, user_id: UUID) -> dict[str, Any] | None:
        """Get a profile by its identity.

        Args:
            user_id: The auth user ID.

        Returns:
            dict | None: The profile data or None if not found.
        """
        try:
            response = (
                self.client.table("profiles")
                .select("*")
                .eq("id", str(user_id))
                .maybe_single()
                .execute()
            )
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to load profile") from e

        return response.data if response and response.data else None

    async def require_profile(self, user_id: UUID) -> dict[str, Any]:
        """Get a profile by identity, raising if it does not exist.

        Raises:
            NotFoundError: If the identity has no profile.
        """
        profile = await self.get_profile(user_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    async def get_profiles(self, user_ids: list[UUID]) -> dict[str, dict[str, Any]]:
        """Load several profiles in one query.

        Args:
            user_ids: Identities to look up.

        Returns:
            dict: Profiles keyed by their id string; missing ids are absent.
        """
        if not user_ids:
            return {}

        try:
            response = (
                self.client.table("profiles")
                .select("*")
                .in_("id", [str(user_id) for user_id in user_ids])
                .execute()
            )
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to load profiles") from e

        return {str(row["id"]): row for row in response.data or []}

    async def update_profile(self, user_id: UUID, data: ProfileUpdate) -> dict[str, Any]:
        """Apply a partial update to a profile.

        Args:
            user_id: The auth user ID.
            data: The fields to update.

        Returns:
            dict: The updated profile data.

        Raises:
            NotFoundError: If the identity has no profile.
            ConflictError: If the new username is taken.
        """
        update_data = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)

        if not update_data:
            return await self.require_profile(user_id)

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            response = (
                self.client.table("profiles")
                .update(update_data)
                .eq("id", str(user_id))
                .execute()
            )
        except STORE_ERRORS as e:
            if is_unique_violation(e):
                raise ConflictError(USERNAME_TAKEN) from e
            raise TransientStoreError("Failed to update profile") from e

        if not response.data:
            raise NotFoundError("Profile not found")

        return response.data[0]

    async def check_username_available(
        self,
        username: str,
        exclude_user_id: UUID | None = None,
    ) -> bool:
        """Check whether a username is free to claim.

        The answer can be stale by the time the profile is written; creation
        still rejects a taken username.

        Args:
            username: Candidate username.
            exclude_user_id: Treat this identity's own username as available.

        Returns:
            bool: True if no other profile uses the username.
        """
        username = username.strip()
        if len(username) < USERNAME_MIN_LENGTH:
            return False

        try:
            response = (
                self.client.table("profiles")
                .select("id")
                .eq("username", username)
                .limit(1)
                .execute()
            )
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to check username") from e

        rows = response.data or []
        if exclude_user_id is not None:
            rows = [row for row in rows if str(row["id"]) != str(exclude_user_id)]
        return not rows

    async def upload_profile_image(
        self,
        user_id: UUID,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> str | None:
        """Upload a profile image and return its public URL.

        Failures are logged and reported as None so the profile can still be
        saved without an image.

        Args:
            user_id: Owner of the image.
            filename: Original file name, used for its extension.
            content: Image bytes.
            content_type: MIME type of the image.

        Returns:
            str | None: Public URL of the stored image, or None on failure.
        """
        if content_type and not content_type.startswith("image/"):
            raise ValidationError("Profile image must be an image file")
        if not content:
            raise ValidationError("Profile image is empty")
        if len(content) > self.settings.profile_image_max_bytes:
            raise ValidationError("Profile image is too large")

        extension = PurePosixPath(filename).suffix.lstrip(".").lower() or "jpg"
        path = f"{user_id}/{int(time.time() * 1000)}.{extension}"
        bucket = self.client.storage.from_(self.settings.profile_image_bucket)

        try:
            bucket.upload(
                path=path,
                file=content,
                file_options={"content-type": content_type or "image/jpeg"},
            )
            url = bucket.get_public_url(path)
        except Exception as e:
            logger.warning("Profile image upload failed for %s: %s", user_id, e)
            return None

        logger.info("Profile image uploaded for %s: %s", user_id, path)
        return url

    async def delete_profile(self, user_id: UUID) -> None:
        """Delete the profile of an identity.

        Args:
            user_id: The auth user ID.
        """
        try:
            self.client.table("profiles").delete().eq("id", str(user_id)).execute()
        except STORE_ERRORS as e:
            raise TransientStoreError("Failed to delete profile") from e

        logger.info("Profile deleted: %s", user_id)
