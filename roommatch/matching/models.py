"""Read-only projections consumed by the match engine, and its result type."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["male", "female", "other"]
GenderPreference = Literal["male", "female", "any"]
MatchLabel = Literal["Excellent", "Good", "Fair", "Low"]
MatchColor = Literal["green", "yellow", "orange", "muted"]
CityMatch = Literal["exact", "partial", "none"]


class UserProfile(BaseModel):
    """Fields of a user document the scorer reads.

    ``college`` and ``company`` are independent signals: either may be set,
    both may be set.
    """

    model_config = ConfigDict(frozen=True)

    city: str = ""
    gender: Gender | None = None
    home_district: str = ""
    college: str | None = None
    company: str | None = None
    year: int | None = None

    @property
    def is_student(self) -> bool:
        return bool(self.college)

    @property
    def is_professional(self) -> bool:
        return bool(self.company)


class ListingPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    gender_preference: GenderPreference | None = None
    profession_preference: list[str] = Field(default_factory=list)


class ListingTarget(BaseModel):
    """Fields of a listing the scorer reads."""

    model_config = ConfigDict(frozen=True)

    city: str = ""
    location: str = ""
    preferences: ListingPreferences = Field(default_factory=ListingPreferences)


class RequestPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    gender_preference: GenderPreference | None = None


class RequestTarget(BaseModel):
    """Fields of a room request the scorer reads, plus the requester's profile."""

    model_config = ConfigDict(frozen=True)

    city: str = ""
    location: str | None = None
    preferences: RequestPreferences = Field(default_factory=RequestPreferences)
    requester_profile: UserProfile | None = None


class MatchBreakdown(BaseModel):
    """Score, bucket and the reasons behind it, in evaluation order."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    label: MatchLabel
    color: MatchColor
    details: list[str] = Field(default_factory=list)
