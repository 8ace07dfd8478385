"""Load users, listings and room requests from a YAML seed file.

Expected shape::

    users:
      - {user_id: u1, name: Asha, age: 21, gender: female, ...}
    listings:
      - {poster_id: u1, title: ..., rent_amount: 9000, city: Kota, ...}
    room_requests:
      - {searcher_id: u2, title: ..., budget_min: 4000, budget_max: 8000, city: Kota}
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from roommatch.accounts.users import register_user
from roommatch.marketplace.listings import post_listing
from roommatch.marketplace.requests import post_room_request

logger = logging.getLogger(__name__)


class SeedResult(BaseModel):
    users: int = 0
    listings: int = 0
    room_requests: int = 0


def load_seed(
    conn: sqlite3.Connection,
    path: str | Path,
    emergency_expiry_days: int = 3,
) -> SeedResult:
    """Insert every document in the seed file, users first."""
    path = Path(path)
    if not path.exists():
        msg = f"Seed file not found: {path}"
        raise FileNotFoundError(msg)
    raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}

    result = SeedResult()
    for data in raw.get("users") or []:
        register_user(conn, data)
        result.users += 1
    for data in raw.get("listings") or []:
        fields = dict(data)
        poster_id = fields.pop("poster_id", None)
        if not poster_id:
            msg = f"listing without poster_id: {data.get('title')}"
            raise ValueError(msg)
        post_listing(conn, poster_id, fields)
        result.listings += 1
    for data in raw.get("room_requests") or []:
        fields = dict(data)
        searcher_id = fields.pop("searcher_id", None)
        if not searcher_id:
            msg = f"room request without searcher_id: {data.get('title')}"
            raise ValueError(msg)
        post_room_request(conn, searcher_id, fields, emergency_expiry_days=emergency_expiry_days)
        result.room_requests += 1

    logger.info(
        "Seeded %d users, %d listings, %d requests from %s",
        result.users, result.listings, result.room_requests, path,
    )
    return result
