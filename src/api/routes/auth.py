"""Authentication API routes."""

from fastapi import APIRouter, status

from src.api.deps import CurrentUser
from src.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageOnlyResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SignupRequest,
    SignupResponse,
)
from src.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up new user",
    description="Create an account with a campus email address. A verification email is sent.",
)
async def signup(data: SignupRequest) -> SignupResponse:
    """Sign up a new user with a campus email and password.

    Args:
        data: Signup request with email and password.

    Returns:
        SignupResponse: User ID, email, and verification email status.

    Raises:
        ValidationError: 422 if the email is not a campus address or signup fails.
    """
    result = await AuthService().signup(email=data.email, password=data.password)
    return SignupResponse(**result)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login user",
    description="Authenticate with email and password and receive access and refresh tokens.",
)
async def login(data: LoginRequest) -> LoginResponse:
    """Log a user in.

    The response tells the client whether onboarding (profile creation)
    is still pending.

    Raises:
        AuthenticationError: 401 if the credentials are rejected.
    """
    result = await AuthService().login(email=data.email, password=data.password)
    return LoginResponse(**result)


@router.post(
    "/logout",
    response_model=MessageOnlyResponse,
    summary="Logout user",
    description="Revoke the current session. The client should discard its tokens.",
)
async def logout(user: CurrentUser) -> MessageOnlyResponse:
    """Log the authenticated user out."""
    if user.access_token:
        await AuthService().logout(user.access_token)
    return MessageOnlyResponse(message="Logged out successfully")


@router.post(
    "/refresh",
    response_model=RefreshTokenResponse,
    summary="Refresh access token",
    description="Exchange a refresh token for a new access token.",
)
async def refresh_token(data: RefreshTokenRequest) -> RefreshTokenResponse:
    """Refresh an access token.

    Raises:
        AuthenticationError: 401 if the refresh token is invalid or expired.
    """
    result = await AuthService().refresh_token(refresh_token=data.refresh_token)
    return RefreshTokenResponse(**result)


@router.post(
    "/change-password",
    response_model=MessageOnlyResponse,
    summary="Change password",
    description="Set a new password for the authenticated user.",
)
async def change_password(
    data: ChangePasswordRequest,
    user: CurrentUser,
) -> MessageOnlyResponse:
    """Change the authenticated user's password.

    Args:
        data: New password and its confirmation.
        user: The authenticated user context.

    Returns:
        MessageOnlyResponse: Status message.
    """
    await AuthService().change_password(user_id=user.user_id, new_password=data.new_password)
    return MessageOnlyResponse(message="Password changed successfully")


@router.delete(
    "/account",
    response_model=MessageOnlyResponse,
    summary="Delete account",
    description="Permanently delete the authenticated user's profile and account.",
)
async def delete_account(user: CurrentUser) -> MessageOnlyResponse:
    """Delete the authenticated user's profile and auth account."""
    await AuthService().delete_account(user.user_id)
    return MessageOnlyResponse(message="Account deleted")
