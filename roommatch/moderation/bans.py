"""Account bans (admin only)."""

import logging
import sqlite3
from datetime import datetime, timedelta

from roommatch.accounts.users import get_user
from roommatch.core.db import put_document
from roommatch.core.schemas import UserDocument

logger = logging.getLogger(__name__)


def ban_user(
    conn: sqlite3.Connection,
    user_id: str,
    reason: str,
    duration_days: int = 0,
    now: datetime | None = None,
) -> UserDocument:
    """Ban a member. ``duration_days=0`` means permanent."""
    if duration_days < 0:
        msg = "duration_days must be >= 0"
        raise ValueError(msg)
    now = now or datetime.now()
    user = get_user(conn, user_id)
    banned = user.model_copy(update={
        "ban_status": "active",
        "ban_reason": reason,
        "ban_expires_at": now + timedelta(days=duration_days) if duration_days else None,
        "updated_at": now,
    })
    put_document(conn, "users", banned)
    logger.info(
        "Banned %s (%s): %s",
        user_id, f"{duration_days} days" if duration_days else "permanent", reason,
    )
    return banned


def unban_user(conn: sqlite3.Connection, user_id: str) -> UserDocument:
    user = get_user(conn, user_id)
    unbanned = user.model_copy(update={
        "ban_status": "none",
        "ban_reason": None,
        "ban_expires_at": None,
        "updated_at": datetime.now(),
    })
    put_document(conn, "users", unbanned)
    logger.info("Unbanned %s", user_id)
    return unbanned


def is_banned(user: UserDocument, now: datetime | None = None) -> bool:
    """True for an active ban that is permanent or not yet expired."""
    if user.ban_status != "active":
        return False
    if user.ban_expires_at is None:
        return True
    return user.ban_expires_at > (now or datetime.now())
