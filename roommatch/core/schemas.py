"""Document models for RoomMatch collections.

Each model validates a document's shape at the boundary where it is built
from input or read back from the store.
"""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from roommatch.matching.models import (
    Gender,
    GenderPreference,
    ListingPreferences,
    ListingTarget,
    RequestPreferences,
    RequestTarget,
    UserProfile,
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\d{10}$")

VerificationType = Literal["student", "professional", "aadhaar", "pan", "selfie"]
Badge = Literal["student", "professional", "identity"]
ChatStatus = Literal["active", "blocked_by_user1", "blocked_by_user2", "blocked_by_both"]
ReportType = Literal["fake_identity", "broker", "scam", "harassment"]
ReportStatus = Literal["pending", "under_review", "resolved", "dismissed"]
RatingStatus = Literal["active", "flagged", "removed"]


class UserDocument(BaseModel):
    """A registered member (searcher, poster, or both)."""

    user_id: str = ""
    name: str
    age: int = Field(ge=18, le=100)
    gender: Gender
    phone: str
    email: str
    city: str
    home_district: str = ""
    user_type: Literal["searcher", "poster", "both"] = "both"

    college: str | None = None
    course: str | None = None
    year: int | None = None
    company: str | None = None
    role: str | None = None

    aadhaar_verified: bool = False
    pan_verified: bool = False
    verification_status: Literal["unverified", "pending", "verified", "rejected"] = "unverified"
    verification_badges: list[Badge] = Field(default_factory=list)

    average_rating: float = 0.0
    total_ratings: int = 0
    rating_distribution: dict[int, int] = Field(default_factory=dict)

    ban_status: Literal["none", "active"] = "none"
    ban_reason: str | None = None
    ban_expires_at: datetime | None = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("name", "city")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("phone")
    @classmethod
    def ten_digit_phone(cls, v: str) -> str:
        v = v.strip()
        if not _PHONE_RE.match(v):
            msg = "phone must be exactly 10 digits"
            raise ValueError(msg)
        return v

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not _EMAIL_RE.match(v):
            msg = f"invalid email address: '{v}'"
            raise ValueError(msg)
        return v

    def to_profile(self) -> UserProfile:
        """Project the fields the match engine reads."""
        return UserProfile(
            city=self.city,
            gender=self.gender,
            home_district=self.home_district,
            college=self.college,
            company=self.company,
            year=self.year,
        )


class ListingDetails(ListingPreferences):
    """Listing preferences as stored, a superset of what the scorer reads."""

    furnishing: Literal["furnished", "semi-furnished", "unfurnished"] | None = None
    other_requirements: str | None = None


class ListingDocument(BaseModel):
    """An accommodation offering from a poster."""

    listing_id: str = ""
    poster_id: str = ""
    title: str
    description: str = ""
    listing_type: Literal["long_term", "pg", "flatmate", "short_stay", "emergency"] = "long_term"
    room_type: str | None = None

    rent_amount: float = Field(gt=0)
    deposit_amount: float = Field(default=0.0, ge=0)
    available_from: datetime | None = None

    location: str = ""
    city: str
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    amenities: list[str] = Field(default_factory=list)
    preferences: ListingDetails = Field(default_factory=ListingDetails)
    images: list[str] = Field(default_factory=list, max_length=10)

    status: Literal["active", "inactive", "rented", "deleted"] = "active"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def to_target(self) -> ListingTarget:
        return ListingTarget(
            city=self.city,
            location=self.location,
            preferences=ListingPreferences(
                gender_preference=self.preferences.gender_preference,
                profession_preference=list(self.preferences.profession_preference),
            ),
        )


class RoomRequestDetails(RequestPreferences):
    location_preference: str | None = None
    amenities_required: list[str] = Field(default_factory=list)
    other_requirements: str | None = None


class RoomRequestDocument(BaseModel):
    """A statement of housing need from a searcher."""

    request_id: str = ""
    searcher_id: str = ""
    title: str
    description: str = ""

    needed_from: datetime | None = None
    needed_until: datetime | None = None
    request_type: Literal["normal", "emergency"] = "normal"
    expires_at: datetime | None = None
    duration: str | None = None

    budget_min: float = Field(gt=0)
    budget_max: float = Field(gt=0)

    city: str
    location: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    preferences: RoomRequestDetails = Field(default_factory=RoomRequestDetails)

    status: Literal["active", "inactive", "fulfilled", "expired", "deleted"] = "active"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def budget_range(self) -> "RoomRequestDocument":
        if self.budget_min > self.budget_max:
            msg = "budget_min must not exceed budget_max"
            raise ValueError(msg)
        return self

    def to_target(self, requester: UserDocument | None) -> RequestTarget:
        return RequestTarget(
            city=self.city,
            location=self.location,
            preferences=RequestPreferences(
                gender_preference=self.preferences.gender_preference,
            ),
            requester_profile=requester.to_profile() if requester else None,
        )


class ChatSession(BaseModel):
    """A conversation between exactly two users."""

    chat_id: str
    participant_ids: tuple[str, str]
    status: ChatStatus = "active"
    created_at: datetime = Field(default_factory=datetime.now)
    last_message_at: datetime = Field(default_factory=datetime.now)
    last_message_sender_id: str | None = None
    last_message_preview: str | None = None

    @field_validator("participant_ids")
    @classmethod
    def two_distinct(cls, v: tuple[str, str]) -> tuple[str, str]:
        if not all(p.strip() for p in v) or v[0] == v[1]:
            msg = "participant_ids must be exactly 2 unique user IDs"
            raise ValueError(msg)
        return v


class Message(BaseModel):
    message_id: str
    chat_id: str
    sender_id: str
    text: str
    message_type: Literal["text", "system"] = "text"
    read_status: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)


class Rating(BaseModel):
    rating_id: str
    reviewer_id: str
    reviewee_id: str
    listing_id: str | None = None
    stars: int = Field(ge=1, le=5)
    review_text: str | None = None
    status: RatingStatus = "active"
    admin_notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class Report(BaseModel):
    """A safety concern raised against a user, for admin review."""

    report_id: str
    reporter_id: str
    reported_user_id: str
    report_type: ReportType
    description: str
    evidence_urls: list[str] = Field(default_factory=list)
    status: ReportStatus = "pending"
    reviewed_at: datetime | None = None
    reviewer_id: str | None = None
    action_taken: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class ModerationEntry(BaseModel):
    """A report as it appears in the reported user's moderation history."""

    entry_id: str
    user_id: str
    report_id: str
    report_type: ReportType
    status: ReportStatus = "pending"
    reviewed_at: datetime | None = None
    action_taken: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class Verification(BaseModel):
    verification_id: str
    user_id: str
    verification_type: VerificationType
    document_url: str
    status: Literal["pending", "approved", "rejected"] = "pending"
    liveness_check_result: bool | None = None
    submitted_at: datetime = Field(default_factory=datetime.now)
    reviewed_at: datetime | None = None
    reviewer_id: str | None = None
    rejection_reason: str | None = None
