"""Match Pydantic schemas for API responses."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.profile import ProfileResponse


class MatchResponse(BaseModel):
    """A stored match between two identities."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Match id")
    user1: UUID = Field(description="First identity of the pair")
    user2: UUID = Field(description="Second identity of the pair")
    created_at: datetime | None = Field(default=None, description="When the match was made")


class MatchWithProfile(MatchResponse):
    """A match joined with the counterpart's current profile."""

    counterpart_id: UUID = Field(description="The other side of the match")
    profile: ProfileResponse = Field(description="Counterpart profile")


class MatchListResponse(BaseModel):
    """List of the current user's matches."""

    matches: list[MatchWithProfile] = Field(default_factory=list)
    total: int = Field(default=0, description="Number of matches returned")


class ReconcileResponse(BaseModel):
    """Matches created by a reconciliation pass."""

    created: list[MatchResponse] = Field(default_factory=list)
