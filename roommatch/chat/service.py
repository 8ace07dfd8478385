"""Chat sessions between two users, their messages, and blocking.

Writes notify the snapshot feed so open conversation and inbox views
receive fresh snapshots.
"""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Literal

from roommatch.chat.feed import SnapshotFeed, Subscription, chat_list_key, messages_key
from roommatch.core.db import (
    get_document,
    new_id,
    put_document,
    query_documents,
    require_document,
)
from roommatch.core.schemas import ChatSession, ChatStatus, Message

logger = logging.getLogger(__name__)


def next_block_status(chat: ChatSession, blocking_user_id: str) -> ChatStatus:
    """Status after ``blocking_user_id`` blocks the chat."""
    user1, user2 = chat.participant_ids
    if chat.status == "active":
        return "blocked_by_user1" if blocking_user_id == user1 else "blocked_by_user2"
    if chat.status == "blocked_by_user1":
        return "blocked_by_both" if blocking_user_id == user2 else "blocked_by_user1"
    if chat.status == "blocked_by_user2":
        return "blocked_by_both" if blocking_user_id == user1 else "blocked_by_user2"
    return "blocked_by_both"


def make_preview(text: str, length: int = 60) -> str:
    return text[:length] + "…" if len(text) > length else text


class ChatService:
    """Chat operations over an explicit connection and feed."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        feed: SnapshotFeed,
        preview_length: int = 60,
        page_size: int = 50,
    ) -> None:
        self._conn = conn
        self._feed = feed
        self._preview_length = preview_length
        self._page_size = page_size

    # -- sessions ---------------------------------------------------------

    def create_chat_session(self, user_id1: str, user_id2: str) -> ChatSession:
        """Open a chat between two users, or return the one they already have."""
        existing = self.find_chat_between_users(user_id1, user_id2)
        if existing is not None:
            return existing
        now = datetime.now()
        chat = ChatSession(
            chat_id=new_id(),
            participant_ids=(user_id1, user_id2),
            created_at=now,
            last_message_at=now,
        )
        put_document(self._conn, "chats", chat)
        logger.info("Created chat %s between %s and %s", chat.chat_id, user_id1, user_id2)
        self._notify_participants(chat)
        return chat

    def find_chat_between_users(self, user_id1: str, user_id2: str) -> ChatSession | None:
        for a, b in ((user_id1, user_id2), (user_id2, user_id1)):
            found = query_documents(
                self._conn, "chats", ChatSession, where={"user1": a, "user2": b}, limit=1,
            )
            if found:
                return found[0]
        return None

    def get_chat_session(self, chat_id: str) -> ChatSession | None:
        return get_document(self._conn, "chats", chat_id, ChatSession)

    def list_user_chats(self, user_id: str) -> list[ChatSession]:
        """All chats the user takes part in, most recent activity first."""
        chats = query_documents(self._conn, "chats", ChatSession, where={"user1": user_id})
        chats += query_documents(self._conn, "chats", ChatSession, where={"user2": user_id})
        chats.sort(key=lambda c: c.last_message_at, reverse=True)
        return chats

    # -- messages ---------------------------------------------------------

    def send_message(
        self,
        chat_id: str,
        sender_id: str,
        text: str,
        message_type: Literal["text", "system"] = "text",
    ) -> Message:
        """Store a message and refresh the chat's last-message preview."""
        chat = self._participant_chat(chat_id, sender_id)
        if chat.status != "active":
            msg = f"Chat {chat_id} is {chat.status}"
            raise PermissionError(msg)
        if not text.strip():
            msg = "message text must not be empty"
            raise ValueError(msg)

        now = datetime.now()
        # keep timestamps strictly increasing within a chat so ordering is total
        if now <= chat.last_message_at:
            now = chat.last_message_at + timedelta(microseconds=1)
        message = Message(
            message_id=new_id(),
            chat_id=chat_id,
            sender_id=sender_id,
            text=text,
            message_type=message_type,
            timestamp=now,
        )
        put_document(self._conn, "messages", message)
        updated = chat.model_copy(update={
            "last_message_at": now,
            "last_message_sender_id": sender_id,
            "last_message_preview": make_preview(text, self._preview_length),
        })
        put_document(self._conn, "chats", updated)
        logger.debug("Message %s sent in chat %s", message.message_id, chat_id)

        self._feed.notify(messages_key(chat_id))
        self._notify_participants(updated)
        return message

    def get_messages(self, chat_id: str, limit: int | None = None) -> list[Message]:
        """The newest ``limit`` messages, oldest first."""
        newest = query_documents(
            self._conn, "messages", Message,
            where={"chat_id": chat_id},
            order_by="timestamp",
            descending=True,
            limit=limit or self._page_size,
        )
        newest.reverse()
        return newest

    def mark_message_as_read(self, chat_id: str, message_id: str) -> Message:
        message = require_document(self._conn, "messages", message_id, Message)
        if message.chat_id != chat_id:
            msg = f"Message {message_id} does not belong to chat {chat_id}"
            raise ValueError(msg)
        if not message.read_status:
            message = message.model_copy(update={"read_status": True})
            put_document(self._conn, "messages", message)
            self._feed.notify(messages_key(chat_id))
        return message

    def mark_chat_read(self, chat_id: str, reader_id: str) -> int:
        """Mark every unread message from the other party as read. Returns the count."""
        self._participant_chat(chat_id, reader_id)
        unread = query_documents(
            self._conn, "messages", Message, where={"chat_id": chat_id, "read_status": False},
        )
        count = 0
        for message in unread:
            if message.sender_id == reader_id:
                continue
            put_document(self._conn, "messages", message.model_copy(update={"read_status": True}))
            count += 1
        if count:
            self._feed.notify(messages_key(chat_id))
        return count

    # -- blocking ---------------------------------------------------------

    def block_chat(self, chat_id: str, blocking_user_id: str) -> ChatSession:
        chat = self._participant_chat(chat_id, blocking_user_id)
        updated = chat.model_copy(update={"status": next_block_status(chat, blocking_user_id)})
        put_document(self._conn, "chats", updated)
        logger.info("Chat %s blocked by %s -> %s", chat_id, blocking_user_id, updated.status)
        self._feed.notify(messages_key(chat_id))
        self._notify_participants(updated)
        return updated

    # -- live views -------------------------------------------------------

    def subscribe_messages(
        self,
        view_id: str,
        chat_id: str,
        callback: Callable[[list[Message]], None],
    ) -> Subscription:
        """Live list of every message in a chat, oldest first."""
        def load() -> list[Message]:
            return query_documents(
                self._conn, "messages", Message, where={"chat_id": chat_id}, order_by="timestamp",
            )

        return self._feed.subscribe(view_id, messages_key(chat_id), load, callback)

    def subscribe_chat_list(
        self,
        view_id: str,
        user_id: str,
        callback: Callable[[list[ChatSession]], None],
    ) -> Subscription:
        """Live list of a user's chats, most recent first."""
        return self._feed.subscribe(
            view_id, chat_list_key(user_id), lambda: self.list_user_chats(user_id), callback,
        )

    # -- helpers ----------------------------------------------------------

    def _participant_chat(self, chat_id: str, user_id: str) -> ChatSession:
        chat = require_document(self._conn, "chats", chat_id, ChatSession)
        if user_id not in chat.participant_ids:
            msg = f"User {user_id} is not a participant of chat {chat_id}"
            raise PermissionError(msg)
        return chat

    def _notify_participants(self, chat: ChatSession) -> None:
        for user_id in chat.participant_ids:
            self._feed.notify(chat_list_key(user_id))
