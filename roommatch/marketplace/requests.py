"""Room requests: posting, expiry of emergency requests, status changes."""

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Any, Literal

from roommatch.accounts.users import get_user
from roommatch.core.db import (
    delete_document,
    new_id,
    put_document,
    query_documents,
    require_document,
)
from roommatch.core.schemas import RoomRequestDocument
from roommatch.moderation.bans import is_banned

logger = logging.getLogger(__name__)

RequestStatus = Literal["active", "inactive", "fulfilled"]

DURATION_LABELS: dict[str, str] = {
    "1_day": "1 Day",
    "2_days": "2 Days",
    "3_days": "3 Days",
    "4_days": "4 Days",
    "5_days": "5 Days",
    "6_days": "6 Days",
    "7_days": "1 Week",
    "1_month": "1 Month",
    "3_months": "3 Months",
    "6_months": "6 Months",
    "12_months": "12 Months",
}

EMERGENCY_DURATIONS = frozenset(
    {"1_day", "2_days", "3_days", "4_days", "5_days", "6_days", "7_days"},
)


def duration_label(code: str) -> str:
    """Display label for a duration code, e.g. '7_days' -> '1 Week'."""
    return DURATION_LABELS.get(code, code.replace("_", " "))


def is_emergency_duration(code: str | None) -> bool:
    return code in EMERGENCY_DURATIONS


def is_expired(request: RoomRequestDocument, now: datetime) -> bool:
    return request.expires_at is not None and request.expires_at <= now


def post_room_request(
    conn: sqlite3.Connection,
    searcher_id: str,
    data: dict[str, Any],
    now: datetime | None = None,
    emergency_expiry_days: int = 3,
) -> RoomRequestDocument:
    """Validate and publish a room request.

    Short stays (1-7 days) are emergency requests; those expire
    ``emergency_expiry_days`` after posting.
    """
    searcher = get_user(conn, searcher_id)
    if is_banned(searcher, now):
        msg = f"User {searcher_id} is banned and cannot post requests"
        raise PermissionError(msg)
    now = now or datetime.now()
    emergency = data.get("request_type") == "emergency" or is_emergency_duration(data.get("duration"))
    request = RoomRequestDocument.model_validate({
        **data,
        "request_id": data.get("request_id") or new_id(),
        "searcher_id": searcher_id,
        "request_type": "emergency" if emergency else "normal",
        "expires_at": now + timedelta(days=emergency_expiry_days) if emergency else None,
        "status": "active",
        "created_at": now,
        "updated_at": now,
    })
    put_document(conn, "room_requests", request, replace=False)
    logger.info(
        "Posted %s request %s in %s by %s",
        request.request_type, request.request_id, request.city, searcher_id,
    )
    return request


def _owned_request(conn: sqlite3.Connection, request_id: str, user_id: str) -> RoomRequestDocument:
    request = require_document(conn, "room_requests", request_id, RoomRequestDocument)
    if request.searcher_id != user_id:
        msg = f"User {user_id} does not own request {request_id}"
        raise PermissionError(msg)
    return request


def set_request_status(
    conn: sqlite3.Connection,
    request_id: str,
    user_id: str,
    status: RequestStatus,
) -> RoomRequestDocument:
    request = _owned_request(conn, request_id, user_id)
    updated = request.model_copy(update={"status": status, "updated_at": datetime.now()})
    put_document(conn, "room_requests", updated)
    logger.info("Request %s -> %s", request_id, status)
    return updated


def toggle_request_status(
    conn: sqlite3.Connection,
    request_id: str,
    user_id: str,
) -> RoomRequestDocument:
    request = _owned_request(conn, request_id, user_id)
    return set_request_status(
        conn, request_id, user_id, "inactive" if request.status == "active" else "active",
    )


def delete_room_request(conn: sqlite3.Connection, request_id: str, user_id: str) -> None:
    _owned_request(conn, request_id, user_id)
    delete_document(conn, "room_requests", request_id)
    logger.info("Deleted request %s", request_id)


def list_active_requests(
    conn: sqlite3.Connection,
    city: str | None = None,
    now: datetime | None = None,
) -> list[RoomRequestDocument]:
    """Active requests, newest first. Lapsed emergency requests are marked expired."""
    now = now or datetime.now()
    where: dict[str, Any] = {"status": "active"}
    if city:
        where["city"] = city
    result: list[RoomRequestDocument] = []
    for request in query_documents(
        conn, "room_requests", RoomRequestDocument,
        where=where, order_by="created_at", descending=True,
    ):
        if is_expired(request, now):
            put_document(
                conn, "room_requests",
                request.model_copy(update={"status": "expired", "updated_at": now}),
            )
            logger.info("Request %s expired", request.request_id)
            continue
        result.append(request)
    return result


def requests_by_searcher(conn: sqlite3.Connection, searcher_id: str) -> list[RoomRequestDocument]:
    return query_documents(
        conn, "room_requests", RoomRequestDocument,
        where={"searcher_id": searcher_id}, order_by="created_at", descending=True,
    )
