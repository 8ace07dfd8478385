"""In-process snapshot feed: live queries with explicit cancellation.

A subscription re-runs its query and hands the full result to its callback
once on subscribe and again on every ``notify(key)``. At most one
subscription is active per (view, key); subscribing again replaces it.

Usage::

    feed = SnapshotFeed()
    sub = feed.subscribe("messages-page", "messages:abc", load, render)
    ...
    feed.notify("messages:abc")   # after a write
    sub.cancel()                  # or feed.unsubscribe_view("messages-page")
"""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Query = Callable[[], Any]
Callback = Callable[[Any], None]


def messages_key(chat_id: str) -> str:
    return f"messages:{chat_id}"


def chat_list_key(user_id: str) -> str:
    return f"chats:{user_id}"


class Subscription:
    """Handle for one live query. Cancel it when the view goes away."""

    def __init__(
        self,
        feed: "SnapshotFeed",
        view_id: str,
        key: str,
        query: Query,
        callback: Callback,
    ) -> None:
        self._feed = feed
        self.view_id = view_id
        self.key = key
        self._query = query
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop deliveries. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)
        logger.debug("Cancelled subscription %s/%s", self.view_id, self.key)

    def _deliver(self) -> None:
        if not self._active:
            return
        try:
            self._callback(self._query())
        except Exception:
            logger.warning(
                "Subscriber %s/%s failed on delivery", self.view_id, self.key, exc_info=True,
            )


class SnapshotFeed:
    """Registry of live subscriptions keyed by (view_id, key)."""

    def __init__(self) -> None:
        self._subs: dict[tuple[str, str], Subscription] = {}

    def subscribe(self, view_id: str, key: str, query: Query, callback: Callback) -> Subscription:
        """Register a live query and deliver its first snapshot immediately."""
        existing = self._subs.get((view_id, key))
        if existing is not None:
            existing.cancel()
        sub = Subscription(self, view_id, key, query, callback)
        self._subs[(view_id, key)] = sub
        logger.debug("Subscribed %s/%s", view_id, key)
        sub._deliver()
        return sub

    def notify(self, key: str) -> int:
        """Re-deliver to every subscriber of ``key``. Returns how many were notified."""
        targets = [sub for (_, k), sub in self._subs.items() if k == key]
        for sub in targets:
            sub._deliver()
        return len(targets)

    def unsubscribe_view(self, view_id: str) -> int:
        """Cancel every subscription held by a view. Returns how many were cancelled."""
        targets = [sub for (v, _), sub in self._subs.items() if v == view_id]
        for sub in targets:
            sub.cancel()
        return len(targets)

    def active_count(self, key: str | None = None) -> int:
        if key is None:
            return len(self._subs)
        return sum(1 for (_, k) in self._subs if k == key)

    def _remove(self, sub: Subscription) -> None:
        if self._subs.get((sub.view_id, sub.key)) is sub:
            del self._subs[(sub.view_id, sub.key)]
