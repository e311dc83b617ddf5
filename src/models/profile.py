"""Profile model type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class Gender(str, Enum):
    """Gender values accepted on a profile."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class LookingFor(str, Enum):
    """What a user is looking for on the platform."""

    DATING = "dating"
    FRIENDSHIP = "friendship"
    NETWORKING = "networking"


class Profile(TypedDict):
    """Profile table row representation.

    The row id is the auth user id, so there is exactly one profile per
    identity.
    """

    id: UUID
    username: str
    first_name: str | None
    last_name: str | None
    gender: Gender | None
    bio: str | None
    interests: list[str]
    year_of_study: int | None
    looking_for: LookingFor | None
    profile_image: str | None
    created_at: datetime
    updated_at: datetime


class ProfileCreate(TypedDict, total=False):
    """Data written when a profile is first created."""

    id: UUID
    username: str
    first_name: str
    last_name: str
    gender: Gender
    bio: str
    interests: list[str]
    year_of_study: int
    looking_for: LookingFor
    profile_image: str | None
