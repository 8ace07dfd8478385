"""Tests for the SQLite document store."""

import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from roommatch.core.db import (
    COLLECTIONS,
    DocumentNotFoundError,
    count_documents,
    delete_document,
    get_document,
    init_db,
    new_id,
    put_document,
    query_documents,
    require_document,
)
from roommatch.core.schemas import ChatSession, Message, Report


def _report(report_id: str = "r1", **kw: object) -> Report:
    defaults: dict[str, object] = {
        "report_id": report_id,
        "reporter_id": "alice",
        "reported_user_id": "bob",
        "report_type": "scam",
        "description": "Asked for a deposit before the visit",
    }
    defaults.update(kw)
    return Report(**defaults)  # type: ignore[arg-type]


class TestInitDb:
    def test_creates_tables(self, db: sqlite3.Connection) -> None:
        tables = {
            row[0]
            for row in db.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        }
        assert set(COLLECTIONS) <= tables

    def test_idempotent(self, tmp_path: Path) -> None:
        p = tmp_path / "double.db"
        init_db(p).close()
        init_db(p).close()

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        init_db(tmp_path / "nested" / "dir" / "x.db").close()
        assert (tmp_path / "nested" / "dir" / "x.db").exists()


class TestPutGet:
    def test_roundtrip(self, db: sqlite3.Connection) -> None:
        report = _report(evidence_urls=["https://example.com/shot.png"])
        put_document(db, "reports", report)
        assert get_document(db, "reports", "r1", Report) == report

    def test_missing_returns_none(self, db: sqlite3.Connection) -> None:
        assert get_document(db, "reports", "nope", Report) is None

    def test_require_missing_raises(self, db: sqlite3.Connection) -> None:
        with pytest.raises(DocumentNotFoundError) as exc:
            require_document(db, "reports", "nope", Report)
        assert isinstance(exc.value, LookupError)
        assert exc.value.doc_id == "nope"

    def test_put_replaces(self, db: sqlite3.Connection) -> None:
        put_document(db, "reports", _report())
        put_document(db, "reports", _report(status="resolved"))
        assert count_documents(db, "reports") == 1
        assert require_document(db, "reports", "r1", Report).status == "resolved"

    def test_unknown_collection(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Unknown collection"):
            put_document(db, "widgets", _report())

    def test_empty_id_rejected(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="report_id"):
            put_document(db, "reports", _report(report_id=""))

    def test_insert_only_rejects_existing_id(self, db: sqlite3.Connection) -> None:
        put_document(db, "reports", _report())
        with pytest.raises(ValueError, match="already exists"):
            put_document(db, "reports", _report(status="dismissed"), replace=False)
        assert require_document(db, "reports", "r1", Report).status == "pending"


class TestQuery:
    def test_filter_and_order(self, db: sqlite3.Connection) -> None:
        base = datetime(2026, 1, 1, 12, 0)
        put_document(db, "reports", _report("a", created_at=base + timedelta(hours=2)))
        put_document(db, "reports", _report("b", created_at=base))
        put_document(db, "reports", _report("c", status="dismissed", created_at=base))

        pending = query_documents(
            db, "reports", Report, where={"status": "pending"}, order_by="created_at",
        )
        assert [r.report_id for r in pending] == ["b", "a"]

        newest = query_documents(
            db, "reports", Report, order_by="created_at", descending=True, limit=1,
        )
        assert [r.report_id for r in newest] == ["a"]

    def test_bool_filter(self, db: sqlite3.Connection) -> None:
        put_document(db, "messages", Message(message_id="m1", chat_id="c", sender_id="a", text="hi"))
        put_document(
            db, "messages",
            Message(message_id="m2", chat_id="c", sender_id="a", text="yo", read_status=True),
        )
        unread = query_documents(db, "messages", Message, where={"read_status": False})
        assert [m.message_id for m in unread] == ["m1"]

    def test_derived_columns(self, db: sqlite3.Connection) -> None:
        put_document(db, "chats", ChatSession(chat_id="c1", participant_ids=("alice", "bob")))
        assert count_documents(db, "chats", {"user1": "alice"}) == 1
        assert count_documents(db, "chats", {"user2": "bob"}) == 1
        assert count_documents(db, "chats", {"user1": "bob"}) == 0

    def test_unknown_column(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="not queryable"):
            query_documents(db, "reports", Report, where={"description": "x"})


class TestDelete:
    def test_delete(self, db: sqlite3.Connection) -> None:
        put_document(db, "reports", _report())
        assert delete_document(db, "reports", "r1") is True
        assert delete_document(db, "reports", "r1") is False
        assert count_documents(db, "reports") == 0


def test_new_id_unique() -> None:
    assert len({new_id() for _ in range(100)}) == 100
