"""Authentication business logic service."""

import logging
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import AuthenticationError, TransientStoreError, ValidationError
from src.core.config import get_settings
from src.core.supabase import create_auth_client
from src.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


class AuthService:
    """Service wrapping Supabase Auth for campus accounts."""

    def __init__(self) -> None:
        """Initialize auth service with an isolated Supabase client.

        Uses create_auth_client() so sign-in calls never touch the session of
        the shared database client.
        """
        self.client = create_auth_client()
        self.settings = get_settings()

    def is_campus_email(self, email: str) -> bool:
        """Check an email against the allowed campus domains."""
        _, _, domain = email.strip().lower().rpartition("@")
        return bool(domain) and domain in self.settings.allowed_email_domains_list

    async def signup(self, email: str, password: str) -> dict[str, Any]:
        """Sign up a new user with a campus email address.

        Args:
            email: User's email address.
            password: User's password.

        Returns:
            dict: Signup response with user_id, email, and email_sent status.

        Raises:
            ValidationError: If the email is not a campus address or signup fails.
        """
        if not self.is_campus_email(email):
            domains = ", ".join(f"@{d}" for d in self.settings.allowed_email_domains_list)
            raise ValidationError(f"Only {domains} email addresses can sign up")

        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            error_msg = str(e)
            logger.error("Signup failed: %s", error_msg)
            if "already registered" in error_msg.lower() or "already exists" in error_msg.lower():
                raise ValidationError("An account with this email already exists") from e
            raise ValidationError(f"Signup failed: {error_msg}") from e

        if not response.user:
            raise ValidationError("Failed to create user account")

        user = response.user
        logger.info("User signed up: %s", user.id)

        return {
            "user_id": str(user.id),
            "email": user.email or email,
            "email_sent": response.session is None,
            "message": "Account created. Please check your email to verify your account.",
        }

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Sign in with email and password.

        Raises:
            AuthenticationError: If the credentials are rejected.
        """
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            error_msg = str(e)
            logger.warning("Login failed: %s", error_msg)
            if "not confirmed" in error_msg.lower():
                raise AuthenticationError("Please verify your email before logging in") from e
            raise AuthenticationError("Invalid email or password") from e

        if not response.user or not response.session:
            raise AuthenticationError("Login failed: no session created")

        user = response.user
        session = response.session
        logger.info("User logged in: %s", user.id)

        has_profile = await ProfileService().get_profile(UUID(str(user.id))) is not None

        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "user_id": str(user.id),
            "email": user.email or email,
            "expires_in": session.expires_in or 3600,
            "has_profile": has_profile,
        }

    async def logout(self, access_token: str) -> None:
        """Revoke the session behind an access token.

        Failures are logged only; the client discards its token either way.
        """
        try:
            self.client.auth.admin.sign_out(access_token)
            logger.info("User logged out")
        except Exception as e:
            logger.warning("Logout failed: %s", e)

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        """Exchange a refresh token for a new access token.

        Raises:
            AuthenticationError: If the refresh token is invalid or expired.
        """
        try:
            response = self.client.auth.refresh_session(refresh_token)
        except Exception as e:
            logger.warning("Token refresh failed: %s", e)
            raise AuthenticationError("Invalid or expired refresh token") from e

        if not response.session:
            raise AuthenticationError("Invalid or expired refresh token")

        session = response.session
        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_in": session.expires_in or 3600,
        }

    async def change_password(self, user_id: UUID, new_password: str) -> None:
        """Set a new password for an authenticated user.

        Raises:
            ValidationError: If the password is rejected.
        """
        try:
            self.client.auth.admin.update_user_by_id(str(user_id), {"password": new_password})
        except Exception as e:
            error_msg = str(e)
            logger.error("Change password failed for %s: %s", user_id, error_msg)
            if "weak" in error_msg.lower():
                raise ValidationError("New password is too weak") from e
            raise ValidationError(f"Failed to change password: {error_msg}") from e

        logger.info("Password changed for user: %s", user_id)

    async def delete_account(self, user_id: UUID) -> None:
        """Delete a user's profile and auth account.

        Likes, matches and messages referencing the user are removed by the
        database's cascading foreign keys.

        Raises:
            TransientStoreError: If the auth account could not be deleted; the
                profile is already gone and the call can be retried.
        """
        await ProfileService().delete_profile(user_id)

        try:
            self.client.auth.admin.delete_user(str(user_id))
        except Exception as e:
            logger.error(
                "Failed to delete auth user %s after its profile was removed: %s", user_id, e
            )
            raise TransientStoreError("Failed to delete account, please retry") from e

        logger.info("Account deleted: %s", user_id)
