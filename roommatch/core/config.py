"""Configuration models and YAML loader for RoomMatch."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/roommatch.db"


class ChatConfig(BaseModel):
    """Chat message and preview limits."""

    preview_length: int = Field(default=60, ge=1)
    message_page_size: int = Field(default=50, ge=1)


class RequestsConfig(BaseModel):
    """Room request lifecycle settings."""

    emergency_expiry_days: int = Field(default=3, ge=1)


class UnreadConfig(BaseModel):
    """Where per-user unread state is kept."""

    storage_dir: str = "data/unread"

    def path_for(self, user_id: str) -> Path:
        return Path(self.storage_dir) / f"{user_id}.json"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    requests: RequestsConfig = Field(default_factory=RequestsConfig)
    unread: UnreadConfig = Field(default_factory=UnreadConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
