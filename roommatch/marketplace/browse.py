"""Browse views: active listings and requests ranked against the viewer."""

import json
import logging
import sqlite3
from datetime import datetime

from roommatch.accounts.users import get_user
from roommatch.core.db import get_document
from roommatch.core.schemas import ListingDocument, RoomRequestDocument, UserDocument
from roommatch.marketplace.listings import list_active_listings
from roommatch.marketplace.requests import list_active_requests
from roommatch.matching.models import MatchBreakdown
from roommatch.matching.scorer import rank_listings, rank_requests

logger = logging.getLogger(__name__)


def browse_listings_for(
    conn: sqlite3.Connection,
    user_id: str,
    city: str | None = None,
) -> list[tuple[ListingDocument, MatchBreakdown]]:
    """Active listings by other posters, best match first."""
    profile = get_user(conn, user_id).to_profile()
    listings = [x for x in list_active_listings(conn, city) if x.poster_id != user_id]
    ranked = rank_listings(profile, [(listing, listing.to_target()) for listing in listings])
    logger.debug("Ranked %d listings for %s", len(ranked), user_id)
    return ranked


def browse_requests_for(
    conn: sqlite3.Connection,
    user_id: str,
    city: str | None = None,
    now: datetime | None = None,
) -> list[tuple[RoomRequestDocument, MatchBreakdown]]:
    """Active requests by other searchers, best match first.

    Each request is scored against its requester's own profile.
    """
    profile = get_user(conn, user_id).to_profile()
    requesters: dict[str, UserDocument | None] = {}
    pairs = []
    for request in list_active_requests(conn, city, now):
        if request.searcher_id == user_id:
            continue
        if request.searcher_id not in requesters:
            requesters[request.searcher_id] = get_document(
                conn, "users", request.searcher_id, UserDocument,
            )
        pairs.append((request, request.to_target(requesters[request.searcher_id])))
    ranked = rank_requests(profile, pairs)
    logger.debug("Ranked %d requests for %s", len(ranked), user_id)
    return ranked


def export_matches_json(
    ranked: list[tuple[ListingDocument, MatchBreakdown]] | list[tuple[RoomRequestDocument, MatchBreakdown]],
) -> str:
    """Export ranked listings or requests as a JSON string."""
    data = []
    for doc, match in ranked:
        doc_id = doc.listing_id if isinstance(doc, ListingDocument) else doc.request_id
        data.append({
            "id": doc_id,
            "title": doc.title,
            "city": doc.city,
            "location": doc.location,
            "score": match.score,
            "label": match.label,
            "color": match.color,
            "details": match.details,
        })
    return json.dumps(data, indent=2, ensure_ascii=False)
