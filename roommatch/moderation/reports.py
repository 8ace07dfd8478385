"""Safety reports and the moderation history of reported users."""

import logging
import sqlite3
from collections import Counter
from collections.abc import Iterable
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from roommatch.accounts.users import get_user
from roommatch.core.db import (
    get_document,
    new_id,
    put_document,
    query_documents,
    require_document,
)
from roommatch.core.schemas import ModerationEntry, Report, ReportType

logger = logging.getLogger(__name__)

ReviewStatus = Literal["under_review", "resolved", "dismissed"]


class ReportStats(BaseModel):
    """Report counts against one user."""

    total: int = 0
    pending: int = 0
    resolved: int = 0
    dismissed: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)


def submit_report(
    conn: sqlite3.Connection,
    reporter_id: str,
    reported_user_id: str,
    report_type: ReportType,
    description: str,
    evidence_urls: Iterable[str] = (),
) -> Report:
    """File a report and open a moderation-history entry for the reported user."""
    if reporter_id == reported_user_id:
        msg = "users cannot report themselves"
        raise ValueError(msg)
    if not description.strip():
        msg = "description must not be empty"
        raise ValueError(msg)
    get_user(conn, reporter_id)
    get_user(conn, reported_user_id)

    report = Report(
        report_id=new_id(),
        reporter_id=reporter_id,
        reported_user_id=reported_user_id,
        report_type=report_type,
        description=description.strip(),
        evidence_urls=list(evidence_urls),
    )
    put_document(conn, "reports", report)
    put_document(
        conn,
        "moderation_history",
        ModerationEntry(
            entry_id=new_id(),
            user_id=reported_user_id,
            report_id=report.report_id,
            report_type=report_type,
            created_at=report.created_at,
        ),
    )
    logger.info("Report %s (%s) filed against %s", report.report_id, report_type, reported_user_id)
    return report


def review_report(
    conn: sqlite3.Connection,
    report_id: str,
    reviewer_id: str,
    status: ReviewStatus,
    action_taken: str,
) -> Report:
    """Record an admin decision on a report and mirror it into moderation history."""
    report = require_document(conn, "reports", report_id, Report)
    now = datetime.now()
    reviewed = report.model_copy(update={
        "status": status,
        "reviewed_at": now,
        "reviewer_id": reviewer_id,
        "action_taken": action_taken,
    })
    put_document(conn, "reports", reviewed)

    entries = query_documents(
        conn, "moderation_history", ModerationEntry,
        where={"user_id": report.reported_user_id, "report_id": report_id},
    )
    for entry in entries:
        put_document(
            conn,
            "moderation_history",
            entry.model_copy(update={"status": status, "reviewed_at": now, "action_taken": action_taken}),
        )
    logger.info("Report %s -> %s by %s", report_id, status, reviewer_id)
    return reviewed


def get_report(conn: sqlite3.Connection, report_id: str) -> Report | None:
    return get_document(conn, "reports", report_id, Report)


def get_pending_reports(conn: sqlite3.Connection) -> list[Report]:
    """Pending reports, oldest first."""
    return query_documents(conn, "reports", Report, where={"status": "pending"}, order_by="created_at")


def get_reports_by_user(conn: sqlite3.Connection, user_id: str) -> list[Report]:
    """Reports filed against a user, newest first."""
    return query_documents(
        conn, "reports", Report,
        where={"reported_user_id": user_id}, order_by="created_at", descending=True,
    )


def get_moderation_history(conn: sqlite3.Connection, user_id: str) -> list[ModerationEntry]:
    return query_documents(
        conn, "moderation_history", ModerationEntry,
        where={"user_id": user_id}, order_by="created_at", descending=True,
    )


def get_user_report_stats(conn: sqlite3.Connection, user_id: str) -> ReportStats:
    reports = get_reports_by_user(conn, user_id)
    statuses = Counter(r.status for r in reports)
    return ReportStats(
        total=len(reports),
        pending=statuses["pending"],
        resolved=statuses["resolved"],
        dismissed=statuses["dismissed"],
        by_type=dict(Counter(r.report_type for r in reports)),
    )
