"""Shared fixtures: a fresh database and a user factory."""

import sqlite3
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from roommatch.accounts.users import register_user
from roommatch.core.db import init_db
from roommatch.core.schemas import UserDocument

_PHONES = iter(f"98{n:08d}" for n in range(10_000))


def user_data(user_id: str, **kw: object) -> dict[str, object]:
    data: dict[str, object] = {
        "user_id": user_id,
        "name": user_id.title(),
        "age": 22,
        "gender": "female",
        "phone": next(_PHONES),
        "email": f"{user_id}@example.com",
        "city": "Mumbai",
        "home_district": "Pune",
    }
    data.update(kw)
    return data


@pytest.fixture()
def db(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    conn = init_db(tmp_path / "test.db")
    yield conn
    conn.close()


@pytest.fixture()
def make_user(db: sqlite3.Connection) -> Callable[..., UserDocument]:
    def _make(user_id: str, **kw: object) -> UserDocument:
        return register_user(db, user_data(user_id, **kw))

    return _make
