"""Profile Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.profile import Gender, LookingFor

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30


def _normalize_interests(value: list[str] | None) -> list[str] | None:
    """Strip tags and drop blanks and duplicates, keeping first-seen order."""
    if value is None:
        return None
    seen: set[str] = set()
    tags: list[str] = []
    for tag in value:
        tag = tag.strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            tags.append(tag)
    return tags


class ProfileCreate(BaseModel):
    """Schema for creating a profile at onboarding."""

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LENGTH,
        max_length=USERNAME_MAX_LENGTH,
        description="Unique public handle",
    )
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    gender: Gender = Field(..., description="Gender")
    bio: str = Field(default="", max_length=1000, description="Optional free-text bio")
    interests: list[str] = Field(default_factory=list, description="Interest tags")
    year_of_study: int = Field(..., ge=1, le=8, description="Year of study")
    looking_for: LookingFor = Field(..., description="What the user is looking for")
    profile_image: str | None = Field(default=None, description="Public URL of the profile image")

    @field_validator("interests")
    @classmethod
    def dedupe_interests(cls, value: list[str]) -> list[str]:
        return _normalize_interests(value) or []


class ProfileUpdate(BaseModel):
    """Schema for updating a profile.

    All fields are optional for partial updates.
    """

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    username: str | None = Field(
        default=None,
        min_length=USERNAME_MIN_LENGTH,
        max_length=USERNAME_MAX_LENGTH,
        description="New username",
    )
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    gender: Gender | None = Field(default=None)
    bio: str | None = Field(default=None, max_length=1000)
    interests: list[str] | None = Field(default=None)
    year_of_study: int | None = Field(default=None, ge=1, le=8)
    looking_for: LookingFor | None = Field(default=None)
    profile_image: str | None = Field(default=None)

    @field_validator("interests")
    @classmethod
    def dedupe_interests(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_interests(value)


class ProfileResponse(BaseModel):
    """Schema for profile API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile id (same as the auth user id)")
    username: str = Field(description="Unique public handle")
    first_name: str | None = Field(default=None)
    last_name: str | None = Field(default=None)
    gender: Gender | None = Field(default=None)
    bio: str | None = Field(default=None)
    interests: list[str] = Field(default_factory=list)
    year_of_study: int | None = Field(default=None)
    looking_for: LookingFor | None = Field(default=None)
    profile_image: str | None = Field(default=None)
    created_at: datetime | None = Field(default=None, description="Profile creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")

    @field_validator("interests", mode="before")
    @classmethod
    def null_interests(cls, value: list[str] | None) -> list[str]:
        return value or []


class UsernameAvailabilityResponse(BaseModel):
    """Result of a username availability check."""

    username: str = Field(description="Candidate username")
    available: bool = Field(description="Whether the username can be claimed right now")


class ProfileImageResponse(BaseModel):
    """Result of a profile image upload."""

    profile_image: str | None = Field(description="Public URL, or null when the upload failed")
    uploaded: bool = Field(description="Whether the image was stored")
