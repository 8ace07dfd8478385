"""Integration test: seed, browse, chat, unread tracking and moderation end to end."""

import sqlite3
from pathlib import Path

import pytest

from roommatch.accounts.users import get_user
from roommatch.chat.feed import SnapshotFeed
from roommatch.chat.service import ChatService
from roommatch.chat.unread import UnreadTracker
from roommatch.core.config import Settings
from roommatch.core.schemas import ChatSession
from roommatch.core.seed import load_seed
from roommatch.marketplace.browse import browse_listings_for, browse_requests_for
from roommatch.marketplace.listings import post_listing
from roommatch.moderation.admin import platform_stats
from roommatch.moderation.bans import ban_user
from roommatch.moderation.reports import get_moderation_history, review_report, submit_report
from roommatch.reputation.ratings import submit_rating

EXAMPLE_SEED = Path(__file__).parents[2] / "config" / "seed.example.yaml"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def seeded(db: sqlite3.Connection) -> sqlite3.Connection:
    load_seed(db, EXAMPLE_SEED)
    return db


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings.model_validate({"unread": {"storage_dir": str(tmp_path / "unread")}})


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


class TestMarketplaceFlow:
    def test_browse_chat_and_read(self, seeded: sqlite3.Connection, settings: Settings) -> None:
        ranked = browse_listings_for(seeded, "asha")
        best, match = ranked[0]
        assert best.poster_id == "meera"
        assert match.label in {"Excellent", "Good"}
        assert "✅ Gender preference matches" in match.details

        feed = SnapshotFeed()
        chat = ChatService(seeded, feed, preview_length=settings.chat.preview_length)
        inbox: list[list[ChatSession]] = []
        chat.subscribe_chat_list("inbox", "meera", inbox.append)

        session = chat.create_chat_session("asha", best.poster_id)
        chat.send_message(session.chat_id, "asha", f"Hi! Is '{best.title}' still available?")
        assert inbox[-1][0].last_message_sender_id == "asha"

        tracker = UnreadTracker(settings.unread.path_for("meera"))
        chats = chat.list_user_chats("meera")
        assert tracker.unread_count(chats, "meera") == 1

        # meera opens the conversation
        page = chat.get_messages(session.chat_id)
        tracker.mark_seen(session.chat_id, page[-1].timestamp)
        assert chat.mark_chat_read(session.chat_id, "meera") == 1
        assert tracker.unread_count(chat.list_user_chats("meera"), "meera") == 0

        chat.send_message(session.chat_id, "meera", "Yes, come visit on Sunday")
        asha_tracker = UnreadTracker(settings.unread.path_for("asha"))
        notes = asha_tracker.notifications(chat.list_user_chats("asha"), "asha")
        assert [n.preview for n in notes] == ["Yes, come visit on Sunday"]
        # the reply is meera's own message, so nothing is unread for her
        assert UnreadTracker(settings.unread.path_for("meera")).unread_count(
            chat.list_user_chats("meera"), "meera",
        ) == 0

    def test_requests_visible_to_other_members(self, seeded: sqlite3.Connection) -> None:
        ranked = browse_requests_for(seeded, "asha")
        assert [doc.searcher_id for doc, _ in ranked] == ["meera"]
        assert browse_requests_for(seeded, "meera") == []

    def test_report_ban_and_reputation(self, seeded: sqlite3.Connection) -> None:
        report = submit_report(seeded, "asha", "rohan", "broker", "Asked for brokerage upfront")
        submit_rating(seeded, "asha", "rohan", 1, "Broker in disguise")
        review_report(seeded, report.report_id, "admin", "resolved", "Account banned")
        ban_user(seeded, "rohan", "broker")

        assert get_user(seeded, "rohan").average_rating == 1.0
        assert get_moderation_history(seeded, "rohan")[0].action_taken == "Account banned"
        with pytest.raises(PermissionError):
            post_listing(seeded, "rohan", {"title": "Another room", "rent_amount": 8000, "city": "Delhi"})

        stats = platform_stats(seeded)
        assert stats.banned_users == 1
        assert stats.pending_reports == 0
        assert stats.active_listings == 2
