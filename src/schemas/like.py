"""Like and match outcome schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.match import MatchResponse


class MatchOutcome(BaseModel):
    """Result of liking a profile.

    ``match_check_failed`` is set when the like was stored but the
    reciprocity check could not complete; the like stands and the match can
    still be created later by the other side's like or a reconciliation pass.
    """

    model_config = ConfigDict(from_attributes=True)

    target_id: UUID = Field(description="Profile that was liked")
    liked: bool = Field(default=True, description="Whether the like is recorded")
    matched: bool = Field(default=False, description="Whether the like completed a mutual match")
    match: MatchResponse | None = Field(default=None, description="The match record when matched")
    match_check_failed: bool = Field(
        default=False,
        description="The reciprocity check failed; retry via reconciliation",
    )
