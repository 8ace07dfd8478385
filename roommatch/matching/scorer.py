"""Synergy match engine: rule-based compatibility scoring.

Score range: 0-100 (capped). Five independent checks, evaluated in order:

  1. Current city           35
  2. Area / location        15
  3. Gender preference      20
  4. Education/profession   20
  5. Home district          10

Pure functions only: no I/O, no clock, no shared state.
"""

from typing import TypeVar

from roommatch.matching.models import (
    CityMatch,
    ListingTarget,
    MatchBreakdown,
    MatchColor,
    MatchLabel,
    RequestTarget,
    UserProfile,
)

T = TypeVar("T")

# (minimum score, label, color), checked top-down.
_LABEL_THRESHOLDS: list[tuple[int, MatchLabel, MatchColor]] = [
    (80, "Excellent", "green"),
    (60, "Good", "yellow"),
    (40, "Fair", "orange"),
]


def normalize(value: str | None) -> str:
    """Lower-case and trim, with None treated as empty."""
    return (value or "").lower().strip()


def city_match(a: str | None, b: str | None) -> CityMatch:
    """Classify two city strings; substring containment either way is partial.

    "Kota" vs "Kota, Rajasthan" is partial. Short names can over-match
    ("Una" vs "Unavailable").
    """
    na = normalize(a)
    nb = normalize(b)
    if not na or not nb:
        return "none"
    if na == nb:
        return "exact"
    if na in nb or nb in na:
        return "partial"
    return "none"


def score_label(score: int) -> tuple[MatchLabel, MatchColor]:
    """Map a score to its (label, color) bucket."""
    for minimum, label, color in _LABEL_THRESHOLDS:
        if score >= minimum:
            return label, color
    return "Low", "muted"


def _empty() -> MatchBreakdown:
    return MatchBreakdown(score=0, label="Low", color="muted", details=[])


def _finish(score: float, details: list[str]) -> MatchBreakdown:
    final = min(100, round(score))
    label, color = score_label(final)
    return MatchBreakdown(score=final, label=label, color=color, details=details)


def _area_points(user_city: str, loc_text: str) -> int:
    """15 when the user's city appears in the location text, 8 for its first word."""
    if user_city and user_city in loc_text:
        return 15
    if user_city and user_city.split(" ")[0] in loc_text:
        return 8
    return 0


def _gender_ok(preference: str | None, gender: str | None) -> bool:
    return not preference or preference == "any" or preference == gender


def match_listing_score(
    profile: UserProfile | None,
    listing: ListingTarget,
) -> MatchBreakdown:
    """How well a seeker's profile matches a listing they are considering."""
    if profile is None:
        return _empty()

    score = 0
    details: list[str] = []

    # 1. City
    cm = city_match(profile.city, listing.city)
    if cm == "exact":
        score += 35
        details.append(f"📍 Same city ({listing.city})")
    elif cm == "partial":
        score += 20
        details.append("📍 Nearby city match")

    # 2. Area / location
    loc_text = normalize(f"{listing.location} {listing.city}")
    area = _area_points(normalize(profile.city), loc_text)
    score += area
    if area == 15:
        details.append("🏘️ Area matches your current city")

    # 3. Gender preference; mismatches are reported even though they score nothing
    if _gender_ok(listing.preferences.gender_preference, profile.gender):
        score += 20
        details.append("✅ Gender preference matches")
    else:
        details.append("⚠️ Gender preference mismatch")

    # 4. Education / profession
    prof_prefs = [normalize(p) for p in listing.preferences.profession_preference]
    is_student = profile.is_student
    is_professional = profile.is_professional
    if not prof_prefs:
        score += 14 if is_student or is_professional else 7
        if is_student:
            details.append("🎓 Student profile (no restriction on listing)")
        elif is_professional:
            details.append("💼 Professional profile (no restriction on listing)")
    else:
        wants_student = any("student" in p for p in prof_prefs)
        wants_professional = any("professional" in p or "working" in p for p in prof_prefs)
        if is_student and wants_student:
            score += 20
            details.append("🎓 Student preference match")
        elif is_professional and wants_professional:
            score += 20
            details.append("💼 Professional preference match")

    # 5. Home district
    home = normalize(profile.home_district)
    if home:
        listing_city = normalize(listing.city)
        if home in loc_text or home in listing_city or listing_city in home:
            score += 10
            details.append(f"🏠 Near your home district ({profile.home_district})")

    return _finish(score, details)


def match_request_score(
    profile: UserProfile | None,
    request: RequestTarget,
) -> MatchBreakdown:
    """How well a poster's profile matches a seeker's room request."""
    if profile is None:
        return _empty()

    score = 0
    details: list[str] = []
    requester = request.requester_profile or UserProfile()

    # 1. City
    cm = city_match(profile.city, request.city)
    if cm == "exact":
        score += 35
        details.append(f"📍 Same city ({request.city})")
    elif cm == "partial":
        score += 20
        details.append("📍 Nearby city")

    # 2. Area / location
    area = _area_points(
        normalize(profile.city),
        normalize(f"{request.location or ''} {request.city}"),
    )
    score += area
    if area == 15:
        details.append("🏘️ Requested area matches your city")

    # 3. Gender preference
    if _gender_ok(request.preferences.gender_preference, profile.gender):
        score += 20
        details.append("✅ Gender preference compatible")
    else:
        details.append("⚠️ Gender preference mismatch")

    # 4. Education / profession, exactly one branch fires
    if profile.is_student and requester.is_student:
        score += 12
        details.append("🎓 Both students")
        my_year = profile.year
        their_year = requester.year
        if my_year and their_year:
            diff = abs(my_year - their_year)
            if diff == 0:
                score += 8
                details.append(f"📅 Same study year (Year {my_year})")
            elif diff == 1:
                score += 5
                details.append("📅 Adjacent study year")
            else:
                score += 2
        else:
            score += 4
    elif profile.is_professional and requester.is_professional:
        score += 16
        details.append("💼 Both professionals")
    elif (profile.is_student or profile.is_professional) and not requester.is_student:
        score += 8
    else:
        score += 5

    # 5. Home district, viewer vs requester
    my_home = normalize(profile.home_district)
    their_home = normalize(requester.home_district)
    if my_home and their_home and (my_home in their_home or their_home in my_home):
        score += 10
        details.append(f"🏠 Same home district ({profile.home_district})")

    return _finish(score, details)


def rank_listings(
    profile: UserProfile | None,
    listings: list[tuple[T, ListingTarget]],
) -> list[tuple[T, MatchBreakdown]]:
    """Score (item, target) pairs and return (item, breakdown) sorted by score desc."""
    scored = [(item, match_listing_score(profile, target)) for item, target in listings]
    scored.sort(key=lambda pair: pair[1].score, reverse=True)
    return scored


def rank_requests(
    profile: UserProfile | None,
    requests: list[tuple[T, RequestTarget]],
) -> list[tuple[T, MatchBreakdown]]:
    """Same as rank_listings, for room requests."""
    scored = [(item, match_request_score(profile, target)) for item, target in requests]
    scored.sort(key=lambda pair: pair[1].score, reverse=True)
    return scored
