"""Authentication schemas for tokens, user context and account operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class UserContext(BaseModel):
    """Authenticated user extracted from a verified access token."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="Unique identifier for the user (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    role: str | None = Field(default=None, description="User's role (e.g., 'authenticated')")
    access_token: str | None = Field(default=None, exclude=True, description="Raw access token")


class TokenPayload(BaseModel):
    """Claims carried by a Supabase access token."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's UUID")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="User's role")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")
    aud: str | None = Field(default=None, description="Audience - intended recipient")
    iss: str | None = Field(default=None, description="Issuer - token issuer URL")

    @property
    def expiration_datetime(self) -> datetime:
        """Get expiration as datetime object."""
        return datetime.fromtimestamp(self.exp)

    def to_user_context(self, access_token: str | None = None) -> UserContext:
        """Convert token payload to UserContext."""
        return UserContext(
            user_id=UUID(self.sub),
            email=self.email,
            role=self.role,
            access_token=access_token,
        )


class AuthenticatedResponse(BaseModel):
    """Response for the authenticated health check."""

    model_config = ConfigDict(from_attributes=True)

    authenticated: bool = Field(default=True, description="Authentication status")
    user_id: str = Field(description="Authenticated user ID")
    email: str | None = Field(default=None, description="User email if available")
    role: str | None = Field(default=None, description="User role if available")


class SignupRequest(BaseModel):
    """Request schema for user signup."""

    email: str = Field(..., description="Campus email address", min_length=3, max_length=255)
    password: str = Field(..., description="User's password", min_length=6, max_length=100)


class SignupResponse(BaseModel):
    """Response schema for user signup."""

    user_id: str = Field(description="Newly created user ID")
    email: str = Field(description="User's email address")
    message: str = Field(description="Success message")
    email_sent: bool = Field(description="Whether a verification email was sent")


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: str = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")


class LoginResponse(BaseModel):
    """Response schema for user login."""

    access_token: str = Field(description="JWT access token")
    refresh_token: str | None = Field(default=None, description="Refresh token if available")
    user_id: str = Field(description="User ID")
    email: str = Field(description="User's email address")
    expires_in: int = Field(description="Token expiration time in seconds")
    has_profile: bool = Field(default=False, description="Whether the user has completed onboarding")


class RefreshTokenRequest(BaseModel):
    """Request schema for refreshing an access token."""

    refresh_token: str = Field(..., description="Refresh token issued at login")


class RefreshTokenResponse(BaseModel):
    """Response schema for token refresh."""

    access_token: str = Field(description="New JWT access token")
    refresh_token: str | None = Field(default=None, description="New refresh token if rotated")
    expires_in: int = Field(description="Token expiration time in seconds")


class ChangePasswordRequest(BaseModel):
    """Request schema for changing the current user's password."""

    new_password: str = Field(..., min_length=6, max_length=100, description="New password")
    confirm_password: str = Field(..., description="Repeat of the new password")

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class MessageOnlyResponse(BaseModel):
    """Generic acknowledgement response."""

    message: str = Field(description="Status message")
