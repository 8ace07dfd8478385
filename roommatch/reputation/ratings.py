"""Ratings between members and the reputation aggregate on each user."""

import logging
import sqlite3
from datetime import datetime

from roommatch.accounts.users import get_user
from roommatch.core.db import new_id, put_document, query_documents, require_document
from roommatch.core.schemas import Rating, RatingStatus, UserDocument

logger = logging.getLogger(__name__)


def submit_rating(
    conn: sqlite3.Connection,
    reviewer_id: str,
    reviewee_id: str,
    stars: int,
    review_text: str | None = None,
    listing_id: str | None = None,
) -> Rating:
    """Rate another member (1-5 stars) and refresh their reputation."""
    if reviewer_id == reviewee_id:
        msg = "users cannot rate themselves"
        raise ValueError(msg)
    get_user(conn, reviewer_id)
    get_user(conn, reviewee_id)

    previous = query_documents(
        conn, "ratings", Rating, where={"reviewer_id": reviewer_id, "reviewee_id": reviewee_id},
    )
    if any(r.listing_id == listing_id and r.status != "removed" for r in previous):
        msg = f"{reviewer_id} has already rated {reviewee_id}"
        raise ValueError(msg)

    rating = Rating(
        rating_id=new_id(),
        reviewer_id=reviewer_id,
        reviewee_id=reviewee_id,
        listing_id=listing_id,
        stars=stars,
        review_text=review_text,
    )
    put_document(conn, "ratings", rating)
    logger.info("Rating %s: %s -> %s (%d stars)", rating.rating_id, reviewer_id, reviewee_id, stars)
    recompute_reputation(conn, reviewee_id)
    return rating


def recompute_reputation(conn: sqlite3.Connection, user_id: str) -> UserDocument:
    """Rebuild average, count and star distribution from non-removed ratings."""
    user = get_user(conn, user_id)
    counted = [r for r in ratings_for_user(conn, user_id) if r.status != "removed"]
    distribution: dict[int, int] = {}
    for r in counted:
        distribution[r.stars] = distribution.get(r.stars, 0) + 1
    total = len(counted)
    average = round(sum(r.stars for r in counted) / total, 2) if total else 0.0
    updated = user.model_copy(update={
        "average_rating": average,
        "total_ratings": total,
        "rating_distribution": distribution,
        "updated_at": datetime.now(),
    })
    put_document(conn, "users", updated)
    return updated


def moderate_rating(
    conn: sqlite3.Connection,
    rating_id: str,
    status: RatingStatus,
    admin_notes: str | None = None,
) -> Rating:
    """Flag, remove or restore a review (admin only)."""
    rating = require_document(conn, "ratings", rating_id, Rating)
    updated = rating.model_copy(update={
        "status": status,
        "admin_notes": admin_notes if admin_notes is not None else rating.admin_notes,
    })
    put_document(conn, "ratings", updated)
    logger.info("Rating %s -> %s", rating_id, status)
    recompute_reputation(conn, rating.reviewee_id)
    return updated


def ratings_for_user(conn: sqlite3.Connection, user_id: str) -> list[Rating]:
    """Ratings received by a user, newest first."""
    return query_documents(
        conn, "ratings", Rating, where={"reviewee_id": user_id}, order_by="created_at", descending=True,
    )
