"""SQLite document store standing in for the hosted document database.

One table per collection. Each row keeps the document id, the handful of
fields that queries filter or sort on, and the whole document as JSON.
Documents are re-validated through their pydantic model on every read.
"""

import logging
import sqlite3
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, NamedTuple, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class DocumentNotFoundError(LookupError):
    """Raised when a document id does not exist in its collection."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection} document not found: {doc_id}")
        self.collection = collection
        self.doc_id = doc_id


class _Collection(NamedTuple):
    id_field: str
    # column name -> extractor over the JSON-mode dump of the document
    columns: dict[str, Callable[[dict[str, Any]], Any]]


def _field(name: str) -> Callable[[dict[str, Any]], Any]:
    return lambda data: data.get(name)


def _fields(*names: str) -> dict[str, Callable[[dict[str, Any]], Any]]:
    return {name: _field(name) for name in names}


COLLECTIONS: dict[str, _Collection] = {
    "users": _Collection(
        "user_id", _fields("email", "city", "ban_status", "verification_status", "created_at"),
    ),
    "listings": _Collection(
        "listing_id", _fields("poster_id", "city", "status", "created_at"),
    ),
    "room_requests": _Collection(
        "request_id", _fields("searcher_id", "city", "status", "request_type", "created_at"),
    ),
    "chats": _Collection(
        "chat_id",
        {
            "user1": lambda data: data["participant_ids"][0],
            "user2": lambda data: data["participant_ids"][1],
            **_fields("status", "last_message_at"),
        },
    ),
    "messages": _Collection(
        "message_id", _fields("chat_id", "sender_id", "read_status", "timestamp"),
    ),
    "ratings": _Collection(
        "rating_id", _fields("reviewer_id", "reviewee_id", "listing_id", "status", "created_at"),
    ),
    "reports": _Collection(
        "report_id", _fields("reporter_id", "reported_user_id", "status", "created_at"),
    ),
    "moderation_history": _Collection(
        "entry_id", _fields("user_id", "report_id", "status", "created_at"),
    ),
    "verifications": _Collection(
        "verification_id", _fields("user_id", "status", "submitted_at"),
    ),
}


def _collection(name: str) -> _Collection:
    try:
        return COLLECTIONS[name]
    except KeyError:
        msg = f"Unknown collection: {name}"
        raise ValueError(msg) from None


def _check_column(collection: str, column: str) -> None:
    if column not in _collection(collection).columns:
        msg = f"Column '{column}' is not queryable on {collection}"
        raise ValueError(msg)


def _table_sql(name: str, coll: _Collection) -> str:
    cols = "".join(f",\n    {col} TEXT" for col in coll.columns)
    return f"""
CREATE TABLE IF NOT EXISTS {name} (
    id   TEXT PRIMARY KEY{cols},
    data TEXT NOT NULL
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    for name, coll in COLLECTIONS.items():
        conn.execute(_table_sql(name, coll))
    conn.commit()
    return conn


def new_id() -> str:
    """Return a fresh document id."""
    return uuid.uuid4().hex


def _column_value(value: Any) -> Any:
    # bools are stored as 0/1 so equality filters on them work
    if isinstance(value, bool):
        return int(value)
    return value


def put_document(
    conn: sqlite3.Connection,
    collection: str,
    doc: BaseModel,
    replace: bool = True,
) -> None:
    """Insert or replace a document, keyed by its id field.

    With ``replace=False`` an existing id raises ValueError instead.
    """
    coll = _collection(collection)
    data = doc.model_dump(mode="json")
    doc_id = data[coll.id_field]
    if not doc_id:
        msg = f"{collection} document has no {coll.id_field}"
        raise ValueError(msg)
    columns = ["id", *coll.columns, "data"]
    values = [
        doc_id,
        *(_column_value(extract(data)) for extract in coll.columns.values()),
        doc.model_dump_json(),
    ]
    placeholders = ", ".join("?" for _ in columns)
    verb = "INSERT OR REPLACE" if replace else "INSERT"
    try:
        conn.execute(
            f"{verb} INTO {collection} ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )
    except sqlite3.IntegrityError:
        msg = f"{collection} document already exists: {doc_id}"
        raise ValueError(msg) from None
    conn.commit()


def get_document(
    conn: sqlite3.Connection,
    collection: str,
    doc_id: str,
    model: type[M],
) -> M | None:
    """Fetch a single document by id, or None."""
    _collection(collection)
    row = conn.execute(f"SELECT data FROM {collection} WHERE id = ?", (doc_id,)).fetchone()
    if row is None:
        return None
    return model.model_validate_json(row["data"])


def require_document(
    conn: sqlite3.Connection,
    collection: str,
    doc_id: str,
    model: type[M],
) -> M:
    """Like get_document, but raises DocumentNotFoundError when missing."""
    doc = get_document(conn, collection, doc_id, model)
    if doc is None:
        raise DocumentNotFoundError(collection, doc_id)
    return doc


def query_documents(
    conn: sqlite3.Connection,
    collection: str,
    model: type[M],
    where: dict[str, Any] | None = None,
    order_by: str | None = None,
    descending: bool = False,
    limit: int | None = None,
) -> list[M]:
    """Return documents matching all equality filters in ``where``."""
    _collection(collection)
    sql = f"SELECT data FROM {collection}"
    params: list[Any] = []
    if where:
        clauses = []
        for column, value in where.items():
            _check_column(collection, column)
            clauses.append(f"{column} = ?")
            params.append(_column_value(value))
        sql += " WHERE " + " AND ".join(clauses)
    if order_by:
        _check_column(collection, order_by)
        sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    logger.debug("query %s: %s %s", collection, sql, params)
    rows = conn.execute(sql, params).fetchall()
    return [model.model_validate_json(row["data"]) for row in rows]


def count_documents(
    conn: sqlite3.Connection,
    collection: str,
    where: dict[str, Any] | None = None,
) -> int:
    """Count documents matching all equality filters in ``where``."""
    _collection(collection)
    sql = f"SELECT COUNT(*) FROM {collection}"
    params: list[Any] = []
    if where:
        clauses = []
        for column, value in where.items():
            _check_column(collection, column)
            clauses.append(f"{column} = ?")
            params.append(_column_value(value))
        sql += " WHERE " + " AND ".join(clauses)
    return conn.execute(sql, params).fetchone()[0]


def delete_document(conn: sqlite3.Connection, collection: str, doc_id: str) -> bool:
    """Delete a document. Returns True if a row was removed."""
    _collection(collection)
    cursor = conn.execute(f"DELETE FROM {collection} WHERE id = ?", (doc_id,))
    conn.commit()
    return cursor.rowcount > 0
