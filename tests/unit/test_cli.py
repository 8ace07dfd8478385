"""Tests for the command-line entry point."""

import json
from pathlib import Path
from textwrap import dedent

import pytest

from main import main, parse_args
from roommatch.chat.feed import SnapshotFeed
from roommatch.chat.service import ChatService
from roommatch.core.db import init_db

EXAMPLE_SEED = Path(__file__).parents[2] / "config" / "seed.example.yaml"


@pytest.fixture()
def config(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(dedent(f"""\
        database:
          path: {tmp_path / "rm.db"}
        unread:
          storage_dir: {tmp_path / "unread"}
    """))
    return path


def _run(config: Path, *argv: str) -> None:
    main([*argv, "--config", str(config)])


class TestParseArgs:
    def test_match_listings(self) -> None:
        args = parse_args(["match-listings", "--user", "asha", "--city", "Mumbai", "-v"])
        assert args.command == "match-listings"
        assert args.user == "asha"
        assert args.city == "Mumbai"
        assert args.verbose is True
        assert args.export is None

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])

    def test_seed_requires_file(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["seed"])


class TestCommands:
    def test_seed_and_match(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(config, "seed", "--file", str(EXAMPLE_SEED))
        assert "Seeded 3 users, 2 listings, 1 room requests." in capsys.readouterr().out

        _run(config, "match-listings", "--user", "asha", "--export", "json")
        ranked = json.loads(capsys.readouterr().out)
        assert [m["title"] for m in ranked] == ["Shared room near IIT gate", "1BHK in Dwarka"]
        assert ranked[0]["score"] > ranked[1]["score"]

    def test_match_requests_text(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(config, "seed", "--file", str(EXAMPLE_SEED))
        capsys.readouterr()
        _run(config, "match-requests", "--user", "asha")
        out = capsys.readouterr().out
        assert out.startswith("1 matches for asha")
        assert "Need a room for exam week" in out

    def test_inbox(self, config: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(config, "seed", "--file", str(EXAMPLE_SEED))
        conn = init_db(tmp_path / "rm.db")
        chat = ChatService(conn, SnapshotFeed())
        session = chat.create_chat_session("asha", "meera")
        chat.send_message(session.chat_id, "meera", "Room is free from Monday")
        conn.close()
        capsys.readouterr()

        _run(config, "inbox", "--user", "asha")
        out = capsys.readouterr().out
        assert "1 unread conversations" in out
        assert "meera: Room is free from Monday" in out

    def test_stats(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(config, "seed", "--file", str(EXAMPLE_SEED))
        capsys.readouterr()
        _run(config, "stats")
        out = capsys.readouterr().out
        assert "total_users: 3" in out
        assert "active_listings: 2" in out

    def test_unknown_user_exits(self, config: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run(config, "init-db")
        with pytest.raises(SystemExit) as exc:
            _run(config, "match-listings", "--user", "ghost")
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_config(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["stats", "--config", str(tmp_path / "missing.yaml")])
        assert exc.value.code == 1
