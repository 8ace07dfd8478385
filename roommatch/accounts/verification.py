"""Identity, student and professional verification workflow.

A member submits a document; an admin approves or rejects it. Approval
grants a badge that the rest of the platform reads as a boolean signal.
"""

import logging
import sqlite3
from datetime import datetime

from roommatch.accounts.users import get_user
from roommatch.core.db import new_id, put_document, query_documents, require_document
from roommatch.core.schemas import Badge, UserDocument, Verification, VerificationType

logger = logging.getLogger(__name__)

BADGE_FOR_TYPE: dict[str, Badge] = {
    "student": "student",
    "professional": "professional",
    "aadhaar": "identity",
    "pan": "identity",
    "selfie": "identity",
}


def submit_verification(
    conn: sqlite3.Connection,
    user_id: str,
    verification_type: VerificationType,
    document_url: str,
    liveness_check_result: bool | None = None,
) -> Verification:
    """Queue a document for review and mark the member as pending."""
    if not document_url.strip():
        msg = "document_url must not be empty"
        raise ValueError(msg)
    user = get_user(conn, user_id)
    verification = Verification(
        verification_id=new_id(),
        user_id=user_id,
        verification_type=verification_type,
        document_url=document_url.strip(),
        liveness_check_result=liveness_check_result,
    )
    put_document(conn, "verifications", verification)
    put_document(
        conn,
        "users",
        user.model_copy(update={"verification_status": "pending", "updated_at": datetime.now()}),
    )
    logger.info("Verification %s (%s) submitted by %s",
                verification.verification_id, verification_type, user_id)
    return verification


def review_verification(
    conn: sqlite3.Connection,
    verification_id: str,
    reviewer_id: str,
    approve: bool,
    rejection_reason: str | None = None,
) -> Verification:
    """Approve or reject a pending verification (admin only)."""
    verification = require_document(conn, "verifications", verification_id, Verification)
    if verification.status != "pending":
        msg = f"Verification {verification_id} already {verification.status}"
        raise ValueError(msg)
    if not approve and not (rejection_reason or "").strip():
        msg = "rejection_reason is required when rejecting"
        raise ValueError(msg)

    now = datetime.now()
    reviewed = verification.model_copy(update={
        "status": "approved" if approve else "rejected",
        "reviewed_at": now,
        "reviewer_id": reviewer_id,
        "rejection_reason": None if approve else rejection_reason,
    })
    put_document(conn, "verifications", reviewed)

    user = get_user(conn, verification.user_id)
    put_document(conn, "users", _apply_review(user, reviewed, now))
    logger.info("Verification %s %s by %s", verification_id, reviewed.status, reviewer_id)
    return reviewed


def _apply_review(user: UserDocument, verification: Verification, now: datetime) -> UserDocument:
    badges = list(user.verification_badges)
    update: dict[str, object] = {"updated_at": now}
    if verification.status == "approved":
        badge = BADGE_FOR_TYPE[verification.verification_type]
        if badge not in badges:
            badges.append(badge)
        if verification.verification_type == "aadhaar":
            update["aadhaar_verified"] = True
        elif verification.verification_type == "pan":
            update["pan_verified"] = True
        update["verification_status"] = "verified"
    else:
        update["verification_status"] = "verified" if badges else "rejected"
    update["verification_badges"] = badges
    return user.model_copy(update=update)


def get_pending_verifications(conn: sqlite3.Connection) -> list[Verification]:
    """Pending submissions, oldest first."""
    return query_documents(
        conn, "verifications", Verification,
        where={"status": "pending"}, order_by="submitted_at",
    )
