"""Client-side unread tracking: a last-seen stamp per chat, kept in a JSON file.

The file plays the role of browser local storage: one per user, read and
written by a single consumer, no locking.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from roommatch.core.schemas import ChatSession

logger = logging.getLogger(__name__)


class ChatNotification(BaseModel):
    """An unread conversation as shown in the notification bell."""

    model_config = ConfigDict(frozen=True)

    chat_id: str
    sender_id: str
    preview: str
    at: datetime


class UnreadTracker:
    """Last-seen timestamps by chat id, persisted on every change."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._seen: dict[str, datetime] = self._load()

    def _load(self) -> dict[str, datetime]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text())
            return {chat_id: datetime.fromisoformat(stamp) for chat_id, stamp in raw.items()}
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError):
            logger.warning("Unreadable unread-state file %s - starting empty", self._path)
            return {}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {chat_id: stamp.isoformat() for chat_id, stamp in self._seen.items()}
        self._path.write_text(json.dumps(data, indent=2, sort_keys=True))

    def last_seen(self, chat_id: str) -> datetime | None:
        return self._seen.get(chat_id)

    def mark_seen(self, chat_id: str, when: datetime | None = None) -> None:
        """Record that the chat was viewed at ``when`` (default now)."""
        self._seen[chat_id] = when or datetime.now()
        self._save()
        logger.debug("Marked chat %s seen at %s", chat_id, self._seen[chat_id])

    def is_unread(self, chat: ChatSession, user_id: str) -> bool:
        """True when someone else wrote last and the user has not looked since."""
        sender = chat.last_message_sender_id
        if not sender or sender == user_id:
            return False
        seen = self._seen.get(chat.chat_id)
        return seen is None or chat.last_message_at > seen

    def unread_chats(self, chats: list[ChatSession], user_id: str) -> list[ChatSession]:
        return [chat for chat in chats if self.is_unread(chat, user_id)]

    def unread_count(self, chats: list[ChatSession], user_id: str) -> int:
        return len(self.unread_chats(chats, user_id))

    def notifications(self, chats: list[ChatSession], user_id: str) -> list[ChatNotification]:
        """Unread chats as notifications, newest first."""
        items = [
            ChatNotification(
                chat_id=chat.chat_id,
                sender_id=chat.last_message_sender_id or "",
                preview=chat.last_message_preview or "",
                at=chat.last_message_at,
            )
            for chat in self.unread_chats(chats, user_id)
        ]
        items.sort(key=lambda n: n.at, reverse=True)
        return items
