"""User registration and profile updates."""

import logging
import sqlite3
from datetime import datetime
from typing import Any

from roommatch.core.db import count_documents, new_id, put_document, require_document
from roommatch.core.schemas import UserDocument

logger = logging.getLogger(__name__)

# Fields only the platform sets: verification, reputation, moderation.
_SYSTEM_FIELDS = frozenset({
    "user_id",
    "aadhaar_verified",
    "pan_verified",
    "verification_status",
    "verification_badges",
    "average_rating",
    "total_ratings",
    "rating_distribution",
    "ban_status",
    "ban_reason",
    "ban_expires_at",
    "created_at",
    "updated_at",
})

# Fields a member may not change through a profile edit.
_PROTECTED_FIELDS = _SYSTEM_FIELDS | {"email"}


def register_user(conn: sqlite3.Connection, data: dict[str, Any]) -> UserDocument:
    """Validate and store a new member.

    Verification, ratings and ban state always start from their defaults,
    whatever the input says.
    """
    fields = {k: v for k, v in data.items() if k not in _SYSTEM_FIELDS}
    user = UserDocument.model_validate({**fields, "user_id": data.get("user_id") or new_id()})
    if count_documents(conn, "users", {"email": user.email}):
        msg = f"Email already registered: {user.email}"
        raise ValueError(msg)
    put_document(conn, "users", user, replace=False)
    logger.info("Registered user %s (%s)", user.user_id, user.user_type)
    return user


def get_user(conn: sqlite3.Connection, user_id: str) -> UserDocument:
    """Load a user; raises DocumentNotFoundError when missing."""
    return require_document(conn, "users", user_id, UserDocument)


def update_profile(
    conn: sqlite3.Connection,
    user_id: str,
    changes: dict[str, Any],
) -> UserDocument:
    """Apply member-editable changes and re-validate the whole document."""
    blocked = sorted(set(changes) & _PROTECTED_FIELDS)
    if blocked:
        msg = f"Fields cannot be edited: {', '.join(blocked)}"
        raise ValueError(msg)
    user = get_user(conn, user_id)
    updated = UserDocument.model_validate(
        {**user.model_dump(), **changes, "updated_at": datetime.now()},
    )
    put_document(conn, "users", updated)
    logger.debug("Updated profile %s: %s", user_id, sorted(changes))
    return updated
