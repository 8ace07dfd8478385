"""CLI entry point for RoomMatch."""

import argparse
import logging
import sys
from pathlib import Path

from roommatch.chat.feed import SnapshotFeed
from roommatch.chat.service import ChatService
from roommatch.chat.unread import UnreadTracker
from roommatch.core.config import Settings
from roommatch.core.db import DocumentNotFoundError, init_db
from roommatch.core.seed import load_seed
from roommatch.marketplace.browse import (
    browse_listings_for,
    browse_requests_for,
    export_matches_json,
)
from roommatch.moderation.admin import platform_stats

DEFAULT_CONFIG = "config/settings.yaml"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG})",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    parser = argparse.ArgumentParser(
        description="RoomMatch - room and roommate matching marketplace",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", parents=[common], help="Create the database")

    seed_parser = subparsers.add_parser(
        "seed", parents=[common], help="Load users, listings and requests from YAML",
    )
    seed_parser.add_argument("--file", required=True, help="Path to seed YAML file")

    for name, help_text in (
        ("match-listings", "Rank active listings for a user"),
        ("match-requests", "Rank active room requests for a user"),
    ):
        match_parser = subparsers.add_parser(name, parents=[common], help=help_text)
        match_parser.add_argument("--user", required=True, help="Viewer user ID")
        match_parser.add_argument("--city", help="Only this city (exact match)")
        match_parser.add_argument("--export", choices=["json"], help="Export results to format (json)")

    inbox_parser = subparsers.add_parser(
        "inbox", parents=[common], help="Show unread chat notifications for a user",
    )
    inbox_parser.add_argument("--user", required=True, help="User ID")

    subparsers.add_parser("stats", parents=[common], help="Show admin overview counts")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Load settings; the default path may be absent, in which case defaults apply."""
    if path == DEFAULT_CONFIG and not Path(path).exists():
        return Settings()
    return Settings.from_yaml(path)


def cmd_match(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    try:
        if args.command == "match-listings":
            ranked = browse_listings_for(conn, args.user, args.city)
        else:
            ranked = browse_requests_for(conn, args.user, args.city)
    finally:
        conn.close()

    if args.export == "json":
        print(export_matches_json(ranked))
        return

    print(f"{len(ranked)} matches for {args.user}")
    for doc, match in ranked:
        print(f"  [{match.score:3d}% {match.label}] {doc.title} - {doc.city}")
        for detail in match.details:
            print(f"      {detail}")


def cmd_inbox(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    try:
        service = ChatService(
            conn,
            SnapshotFeed(),
            preview_length=settings.chat.preview_length,
            page_size=settings.chat.message_page_size,
        )
        chats = service.list_user_chats(args.user)
    finally:
        conn.close()
    tracker = UnreadTracker(settings.unread.path_for(args.user))
    notifications = tracker.notifications(chats, args.user)
    print(f"{len(notifications)} unread conversations")
    for n in notifications:
        print(f"  {n.at:%Y-%m-%d %H:%M} {n.sender_id}: {n.preview}")


def run(args: argparse.Namespace, settings: Settings) -> None:
    if args.command == "init-db":
        init_db(settings.database.path).close()
        print(f"Database ready at {settings.database.path}")
    elif args.command == "seed":
        conn = init_db(settings.database.path)
        try:
            result = load_seed(conn, args.file, settings.requests.emergency_expiry_days)
        finally:
            conn.close()
        print(f"Seeded {result.users} users, {result.listings} listings, "
              f"{result.room_requests} room requests.")
    elif args.command in ("match-listings", "match-requests"):
        cmd_match(args, settings)
    elif args.command == "inbox":
        cmd_inbox(args, settings)
    elif args.command == "stats":
        conn = init_db(settings.database.path)
        try:
            stats = platform_stats(conn)
        finally:
            conn.close()
        for name, value in stats.model_dump().items():
            print(f"  {name}: {value}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        run(args, settings)
    except (DocumentNotFoundError, ValueError, PermissionError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
