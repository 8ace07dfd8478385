"""Room listings: posting, status changes, deletion, browsing queries."""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Literal

from roommatch.accounts.users import get_user
from roommatch.core.db import (
    delete_document,
    new_id,
    put_document,
    query_documents,
    require_document,
)
from roommatch.core.schemas import ListingDocument
from roommatch.moderation.bans import is_banned

logger = logging.getLogger(__name__)

ListingStatus = Literal["active", "inactive", "rented"]


def post_listing(
    conn: sqlite3.Connection,
    poster_id: str,
    data: dict[str, Any],
) -> ListingDocument:
    """Validate and publish a listing for ``poster_id``."""
    poster = get_user(conn, poster_id)
    if is_banned(poster):
        msg = f"User {poster_id} is banned and cannot post listings"
        raise PermissionError(msg)
    now = datetime.now()
    listing = ListingDocument.model_validate({
        **data,
        "listing_id": data.get("listing_id") or new_id(),
        "poster_id": poster_id,
        "status": "active",
        "created_at": now,
        "updated_at": now,
    })
    put_document(conn, "listings", listing, replace=False)
    logger.info("Posted listing %s in %s by %s", listing.listing_id, listing.city, poster_id)
    return listing


def _owned_listing(conn: sqlite3.Connection, listing_id: str, user_id: str) -> ListingDocument:
    listing = require_document(conn, "listings", listing_id, ListingDocument)
    if listing.poster_id != user_id:
        msg = f"User {user_id} does not own listing {listing_id}"
        raise PermissionError(msg)
    return listing


def set_listing_status(
    conn: sqlite3.Connection,
    listing_id: str,
    user_id: str,
    status: ListingStatus,
) -> ListingDocument:
    listing = _owned_listing(conn, listing_id, user_id)
    updated = listing.model_copy(update={"status": status, "updated_at": datetime.now()})
    put_document(conn, "listings", updated)
    logger.info("Listing %s -> %s", listing_id, status)
    return updated


def toggle_listing_status(
    conn: sqlite3.Connection,
    listing_id: str,
    user_id: str,
) -> ListingDocument:
    """Flip active <-> inactive, as the owner's listing view does."""
    listing = _owned_listing(conn, listing_id, user_id)
    return set_listing_status(
        conn, listing_id, user_id, "inactive" if listing.status == "active" else "active",
    )


def delete_listing(conn: sqlite3.Connection, listing_id: str, user_id: str) -> None:
    _owned_listing(conn, listing_id, user_id)
    delete_document(conn, "listings", listing_id)
    logger.info("Deleted listing %s", listing_id)


def list_active_listings(
    conn: sqlite3.Connection,
    city: str | None = None,
) -> list[ListingDocument]:
    """Active listings, newest first, optionally for one city (exact match)."""
    where: dict[str, Any] = {"status": "active"}
    if city:
        where["city"] = city
    return query_documents(
        conn, "listings", ListingDocument, where=where, order_by="created_at", descending=True,
    )


def listings_by_poster(conn: sqlite3.Connection, poster_id: str) -> list[ListingDocument]:
    return query_documents(
        conn, "listings", ListingDocument,
        where={"poster_id": poster_id}, order_by="created_at", descending=True,
    )
