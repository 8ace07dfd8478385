"""Admin console overview numbers."""

import sqlite3
from datetime import datetime

from pydantic import BaseModel

from roommatch.core.db import count_documents, query_documents
from roommatch.core.schemas import RoomRequestDocument, UserDocument
from roommatch.marketplace.requests import is_expired
from roommatch.moderation.bans import is_banned


class PlatformStats(BaseModel):
    total_users: int
    verified_users: int
    banned_users: int
    active_listings: int
    active_requests: int
    total_chats: int
    pending_reports: int
    pending_verifications: int


def platform_stats(conn: sqlite3.Connection, now: datetime | None = None) -> PlatformStats:
    """Counts shown on the admin dashboard. Expired bans and requests are not counted."""
    now = now or datetime.now()
    banned = query_documents(conn, "users", UserDocument, where={"ban_status": "active"})
    requests = query_documents(
        conn, "room_requests", RoomRequestDocument, where={"status": "active"},
    )
    return PlatformStats(
        total_users=count_documents(conn, "users"),
        verified_users=count_documents(conn, "users", {"verification_status": "verified"}),
        banned_users=sum(1 for user in banned if is_banned(user, now)),
        active_listings=count_documents(conn, "listings", {"status": "active"}),
        active_requests=sum(1 for request in requests if not is_expired(request, now)),
        total_chats=count_documents(conn, "chats"),
        pending_reports=count_documents(conn, "reports", {"status": "pending"}),
        pending_verifications=count_documents(conn, "verifications", {"status": "pending"}),
    )
